"""Binary codec of the SBF format.

The `.sbf.data` file starts with a fixed 64 byte header, followed by the point
matrix as 32-bit floats. Everything is stored big-endian::

    offset  size  field
         0     2  magic bytes (42, 42)
         2     8  point count (uint64)
        10     2  scalar field count (int16)
        12    24  global shift x, y, z (float64)
        36    28  reserved, zero-filled
        64     *  points, each as 3 coordinates followed by its scalar field values (float32)
"""

import os
from pathlib import Path
from typing import BinaryIO, Final

import numpy as np
from loguru import logger

from sbf.exceptions import FormatLimitExceededError, InvalidHeaderError, TruncatedFileError
from sbf.models.base import COORDINATE_CHANNELS

from .data_types import GlobalShift, SBFPayload

MAGIC: Final[tuple[int, int]] = (42, 42)
RESERVED_BYTES: Final[int] = 28

BINARY_HEADER: Final[np.dtype] = np.dtype(
    [
        ("magic", "u1", (2,)),
        ("point_count", ">u8"),
        ("scalar_field_count", ">i2"),
        ("global_shift", ">f8", (3,)),
        ("reserved", "u1", (RESERVED_BYTES,)),
    ]
)
BINARY_HEADER_SIZE: Final[int] = BINARY_HEADER.itemsize  # 64
PAYLOAD_DTYPE: Final[np.dtype] = np.dtype(">f4")
MAX_SCALAR_FIELD_COUNT: Final[int] = int(np.iinfo(np.int16).max)


def check_scalar_field_count(scalar_field_count: int, path: Path | str) -> None:
    """
    Check that a scalar field count fits in the signed 16-bit field of the binary header.

    :raises FormatLimitExceededError: If the count would wrap around when stored.
    """
    if scalar_field_count > MAX_SCALAR_FIELD_COUNT:
        raise FormatLimitExceededError(
            path,
            f"{scalar_field_count} scalar fields requested, the format supports at most {MAX_SCALAR_FIELD_COUNT}",
        )


def encode_binary_header(point_count: int, scalar_field_count: int, global_shift: GlobalShift) -> bytes:
    header = np.zeros((), dtype=BINARY_HEADER)
    header["magic"] = MAGIC
    header["point_count"] = point_count
    header["scalar_field_count"] = scalar_field_count
    header["global_shift"] = global_shift.as_tuple()
    return header.tobytes()


def write_binary(handle: BinaryIO, data: np.ndarray, global_shift: GlobalShift, path: Path | str) -> None:
    """
    Write a point matrix and its global shift to a binary stream.

    :param handle: A binary stream positioned where the file should start.
    :param data: The point matrix, one row per channel and one column per point.
    :param global_shift: The global shift of the point coordinates.
    :param path: The destination path, used in error messages.
    :raises FormatLimitExceededError: If the matrix has more scalar fields than the format supports.
    """
    channels, point_count = data.shape
    scalar_field_count = channels - COORDINATE_CHANNELS
    check_scalar_field_count(scalar_field_count, path)

    handle.write(encode_binary_header(point_count, scalar_field_count, global_shift))
    # column-major: all channels of the first point, then all channels of the second point, ...
    handle.write(np.ascontiguousarray(data.T, dtype=PAYLOAD_DTYPE).tobytes())
    logger.debug(f"Encoded {point_count} points with {scalar_field_count} scalar fields for {path}")


def _stream_size(handle: BinaryIO) -> int:
    size = handle.seek(0, os.SEEK_END)
    handle.seek(0, os.SEEK_SET)
    return size


def read_binary(handle: BinaryIO, path: Path | str, strict_magic: bool = True) -> SBFPayload:
    """
    Read a point matrix from a binary stream.

    The payload is always read from the fixed offset 64, whatever the reserved bytes contain.
    Bytes beyond the declared payload are ignored.

    :param handle: A seekable binary stream.
    :param path: The source path, stored in the result and used in error messages.
    :param strict_magic: If True, the two magic bytes must be 42. If False, they are skipped unchecked.
    :returns: The binary header values and the point matrix in native byte order.
    :raises InvalidHeaderError: If the magic bytes or the scalar field count are invalid.
    :raises TruncatedFileError: If the stream is shorter than the header declares.
    """
    path = Path(path)
    size = _stream_size(handle)
    if size < BINARY_HEADER_SIZE:
        raise TruncatedFileError(path, f"File has {size} bytes, the binary header alone takes {BINARY_HEADER_SIZE}")

    header = np.frombuffer(handle.read(BINARY_HEADER_SIZE), dtype=BINARY_HEADER)[0]
    magic = tuple(int(byte) for byte in header["magic"])
    if strict_magic and magic != MAGIC:
        raise InvalidHeaderError(path, f"Unexpected magic bytes {magic}, expected {MAGIC}")

    point_count = int(header["point_count"])
    scalar_field_count = int(header["scalar_field_count"])
    if scalar_field_count < 0:
        raise InvalidHeaderError(path, f"Negative scalar field count {scalar_field_count}")
    channels = COORDINATE_CHANNELS + scalar_field_count

    payload_size = point_count * channels * PAYLOAD_DTYPE.itemsize
    if (available := size - BINARY_HEADER_SIZE) < payload_size:
        raise TruncatedFileError(
            path,
            f"Expected {payload_size} bytes for {point_count} points with {channels} channels, "
            f"but only {available} are available",
        )

    handle.seek(BINARY_HEADER_SIZE, os.SEEK_SET)
    values = np.frombuffer(handle.read(payload_size), dtype=PAYLOAD_DTYPE)
    data = values.reshape(point_count, channels).T.astype(np.float32)

    logger.debug(f"Decoded {point_count} points with {scalar_field_count} scalar fields from {path}")
    return SBFPayload(
        path=path,
        point_count=point_count,
        scalar_field_count=scalar_field_count,
        global_shift=GlobalShift.from_sequence(header["global_shift"]),
        data=data,
    )
