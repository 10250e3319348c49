from io import BytesIO
from pathlib import Path

import numpy as np
import pytest

from sbf.exceptions import FormatLimitExceededError, InvalidHeaderError, TruncatedFileError
from sbf.parsers.binary import (
    BINARY_HEADER,
    BINARY_HEADER_SIZE,
    MAX_SCALAR_FIELD_COUNT,
    check_scalar_field_count,
    encode_binary_header,
    read_binary,
    write_binary,
)
from sbf.parsers.data_types import GlobalShift

from tests.helper_function import pack_binary_header, pack_points

DATA_PATH = Path("cloud.sbf.data")


def read_bytes(content: bytes, strict_magic: bool = True):
    return read_binary(BytesIO(content), DATA_PATH, strict_magic=strict_magic)


class TestBinaryLayout:
    def test_header_is_64_bytes(self):
        assert BINARY_HEADER_SIZE == 64

    @pytest.mark.parametrize(
        "field, offset",
        (
            ("magic", 0),
            ("point_count", 2),
            ("scalar_field_count", 10),
            ("global_shift", 12),
            ("reserved", 36),
        ),
    )
    def test_field_offsets(self, field: str, offset: int):
        assert BINARY_HEADER.fields[field][1] == offset

    def test_encode_binary_header_matches_reference_layout(self):
        shift = GlobalShift(x=1000.5, y=-2.25, z=3.0)

        encoded = encode_binary_header(123456789, 7, shift)

        assert encoded == pack_binary_header(123456789, 7, (1000.5, -2.25, 3.0))

    def test_scalar_field_limit(self):
        assert MAX_SCALAR_FIELD_COUNT == 32767
        check_scalar_field_count(32767, DATA_PATH)
        with pytest.raises(FormatLimitExceededError, match="32768"):
            check_scalar_field_count(32768, DATA_PATH)


class TestWriteBinary:
    def test_payload_is_written_point_by_point(self):
        data = np.array(
            [
                [1.0, 2.0],  # X
                [3.0, 4.0],  # Y
                [5.0, 6.0],  # Z
                [7.0, 8.0],  # scalar field
            ],
            dtype=np.float32,
        )
        stream = BytesIO()

        write_binary(stream, data, GlobalShift(), DATA_PATH)

        content = stream.getvalue()
        assert content[:BINARY_HEADER_SIZE] == pack_binary_header(2, 1)
        assert content[BINARY_HEADER_SIZE:] == pack_points(data)
        assert np.array_equal(
            np.frombuffer(content[BINARY_HEADER_SIZE:], dtype=">f4"),
            [1.0, 3.0, 5.0, 7.0, 2.0, 4.0, 6.0, 8.0],
        )

    def test_empty_cloud_writes_only_the_header(self):
        stream = BytesIO()

        write_binary(stream, np.zeros((3, 0), dtype=np.float32), GlobalShift(), DATA_PATH)

        assert stream.getvalue() == pack_binary_header(0, 0)

    def test_too_many_scalar_fields_raises_before_writing(self):
        stream = BytesIO()
        data = np.zeros((3 + MAX_SCALAR_FIELD_COUNT + 1, 0), dtype=np.float32)

        with pytest.raises(FormatLimitExceededError):
            write_binary(stream, data, GlobalShift(), DATA_PATH)

        assert stream.getvalue() == b""

    def test_maximum_scalar_field_count_is_written(self):
        stream = BytesIO()
        data = np.zeros((3 + MAX_SCALAR_FIELD_COUNT, 0), dtype=np.float32)

        write_binary(stream, data, GlobalShift(), DATA_PATH)

        assert stream.getvalue() == pack_binary_header(0, MAX_SCALAR_FIELD_COUNT)


class TestReadBinary:
    def test_read_binary(self, point_matrix: np.ndarray):
        content = pack_binary_header(5, 2, (10.0, 20.0, -30.5)) + pack_points(point_matrix)

        payload = read_bytes(content)

        assert payload.path == DATA_PATH
        assert payload.point_count == 5
        assert payload.scalar_field_count == 2
        assert payload.global_shift == GlobalShift(x=10.0, y=20.0, z=-30.5)
        assert payload.data.dtype == np.float32
        assert payload.data.dtype.isnative
        assert np.array_equal(payload.data, point_matrix)

    def test_empty_cloud(self):
        payload = read_bytes(pack_binary_header(0, 0))

        assert payload.point_count == 0
        assert payload.data.shape == (3, 0)

    def test_trailing_bytes_are_ignored(self, point_matrix: np.ndarray):
        content = pack_binary_header(5, 2) + pack_points(point_matrix) + b"trailing garbage"

        payload = read_bytes(content)

        assert np.array_equal(payload.data, point_matrix)

    def test_reserved_bytes_are_ignored(self, point_matrix: np.ndarray):
        content = pack_binary_header(5, 2, reserved=b"\xff" * 28) + pack_points(point_matrix)

        payload = read_bytes(content)

        assert np.array_equal(payload.data, point_matrix)

    def test_read_data_is_writable_copy(self, point_matrix: np.ndarray):
        payload = read_bytes(pack_binary_header(5, 2) + pack_points(point_matrix))

        assert payload.data.flags.writeable
        assert payload.data.base is None or payload.data.base.flags.owndata

    @pytest.mark.parametrize(
        "content",
        (
            pytest.param(b"", id="empty file"),
            pytest.param(pack_binary_header(0, 0)[:63], id="header cut short"),
            pytest.param(pack_binary_header(2, 0) + bytes(12), id="one point missing"),
            pytest.param(pack_binary_header(1, 1) + bytes(12), id="one channel missing"),
            pytest.param(pack_binary_header(2**64 - 1, 0), id="absurd point count"),
        ),
    )
    def test_truncated_file_raises(self, content: bytes):
        with pytest.raises(TruncatedFileError) as error:
            read_bytes(content)

        assert error.value.path == DATA_PATH

    def test_wrong_magic_raises_in_strict_mode(self):
        with pytest.raises(InvalidHeaderError, match="magic"):
            read_bytes(pack_binary_header(0, 0, magic=b"PK"))

    def test_wrong_magic_is_skipped_in_lenient_mode(self):
        payload = read_bytes(pack_binary_header(1, 0, magic=b"PK") + pack_points(np.ones((3, 1))), strict_magic=False)

        assert np.array_equal(payload.data, np.ones((3, 1)))

    def test_negative_scalar_field_count_raises(self):
        with pytest.raises(InvalidHeaderError, match="Negative"):
            read_bytes(pack_binary_header(0, -1))

    def test_write_then_read(self, point_matrix: np.ndarray):
        stream = BytesIO()
        shift = GlobalShift(x=654321.125, y=-0.5, z=12.0)
        write_binary(stream, point_matrix, shift, DATA_PATH)

        payload = read_binary(stream, DATA_PATH)

        assert payload.global_shift == shift
        assert np.array_equal(payload.data, point_matrix)
