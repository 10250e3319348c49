"""Public entry points for reading and writing SBF file pairs.

An SBF point cloud is stored in two files: an ASCII header `<name>.sbf` and a
binary file `<name>.sbf.data` holding the points. See
https://www.cloudcompare.org/doc/wiki/index.php?title=SBF for the format definition.
"""

import os
from collections.abc import Iterable, Sequence
from contextlib import suppress
from pathlib import Path
from uuid import uuid4

import numpy as np
from loguru import logger
from returns.io import impure_safe

from sbf.exceptions import FileAccessError, InvalidArgumentError
from sbf.models.base import COORDINATE_CHANNELS
from sbf.settings import get_settings
from sbf.utils.logger import log_railway_function

from .binary import check_scalar_field_count, read_binary, write_binary
from .data_types import HEADER_SUFFIX, GlobalShift, SBFFile, data_path
from .header import read_header, write_header
from .validation import compare_duplicate_entries

_FORBIDDEN_NAME_CHARACTERS = frozenset(",=\r\n")


def _as_point_matrix(data: np.ndarray, path: Path) -> np.ndarray:
    try:
        matrix = np.asarray(data, dtype=np.float32)
    except (TypeError, ValueError) as err:
        raise InvalidArgumentError(path, "Point matrix must be numeric") from err
    if matrix.ndim != 2 or matrix.shape[0] < COORDINATE_CHANNELS:
        raise InvalidArgumentError(
            path, f"Point matrix must be 2D with at least {COORDINATE_CHANNELS} rows, but has shape {matrix.shape}"
        )
    return matrix


def _as_global_shift(global_shift: GlobalShift | Sequence[float], path: Path) -> GlobalShift:
    if isinstance(global_shift, GlobalShift):
        return global_shift
    try:
        return GlobalShift.from_sequence(global_shift)
    except (TypeError, ValueError) as err:
        raise InvalidArgumentError(path, f"Invalid global shift: {global_shift!r}") from err


def _check_scalar_field_names(names: Iterable[str], scalar_field_count: int, path: Path) -> tuple[str, ...]:
    try:
        # a single string is one name, not a sequence of one-letter names
        names = (names,) if isinstance(names, str) else tuple(names)
    except TypeError as err:
        raise InvalidArgumentError(
            path, f"Scalar field names must be a sequence of text, got {type(names).__name__}"
        ) from err

    if scalar_field_count == 0:
        if names:
            logger.warning(f"Ignoring {len(names)} scalar field name(s), the point matrix has no scalar fields")
        return ()
    if not names:
        raise InvalidArgumentError(path, "The names of the scalar fields are not specified")
    if len(names) != scalar_field_count:
        raise InvalidArgumentError(
            path, f"Wrong number of scalar field names, expected {scalar_field_count}, got {len(names)}"
        )
    for name in names:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(path, f"Scalar field names must be non-empty text, got {name!r}")
        if name != name.strip() or _FORBIDDEN_NAME_CHARACTERS.intersection(name):
            raise InvalidArgumentError(
                path, f"Scalar field name {name!r} can not be stored: no commas, '=', line breaks or padding"
            )
    # numpy string scalars are stored as plain text
    return tuple(str(name) for name in names)


def _temporary_sibling(path: Path) -> Path:
    return path.with_name(f".{path.name}.{uuid4().hex[:8]}.tmp")


def _remove_files(paths: Iterable[Path]) -> None:
    for path in paths:
        with suppress(OSError):
            path.unlink(missing_ok=True)


def write_sbf(
    data: np.ndarray,
    path: Path | str,
    global_shift: GlobalShift | Sequence[float] = (0.0, 0.0, 0.0),
    scalar_field_names: Iterable[str] = (),
) -> Path:
    """
    Write a point cloud to an SBF file pair.

    The input is fully validated before any file is touched. Both files are written to
    temporary files next to their destination first and only then moved into place,
    so an interrupted write does not leave a complete-looking file pair behind.

    The binary file is moved into place before the header. If moving the header fails
    while an older pair exists at `path`, the new `.sbf.data` is left next to the old
    `.sbf`; reading that pair reports the mismatch as cross-validation warnings, and a
    `FileAccessError` naming the header is raised here.

    :param data: Matrix with one column per point: rows 1-3 hold the X, Y and Z coordinates,
        any further rows hold scalar field values. Stored as 32-bit floats.
    :param path: Path of the header file, must end with `.sbf`. The binary file is written
        to the same path with `.data` appended.
    :param global_shift: The global shift of the coordinates in `data`.
    :param scalar_field_names: One name per scalar field, e.g. a tuple or a numpy array of
        strings; required when there are scalar fields.
    :returns: The path of the header file.
    :raises InvalidArgumentError: If any of the arguments violates the input contract.
    :raises FormatLimitExceededError: If `data` has more scalar fields than the format can store.
    :raises FileAccessError: If one of the files can not be written.
    """
    path = Path(path)
    if not str(path).endswith(HEADER_SUFFIX):
        raise InvalidArgumentError(path, f"File path must end with '{HEADER_SUFFIX}'")
    matrix = _as_point_matrix(data, path)
    scalar_field_count = matrix.shape[0] - COORDINATE_CHANNELS
    check_scalar_field_count(scalar_field_count, path)
    names = _check_scalar_field_names(scalar_field_names, scalar_field_count, path)
    shift = _as_global_shift(global_shift, path)
    settings = get_settings()

    binary_path = data_path(path)
    header_tmp, binary_tmp = _temporary_sibling(path), _temporary_sibling(binary_path)
    target = path
    try:
        with header_tmp.open("w", encoding="utf-8", newline="\n") as handle:
            write_header(handle, matrix.shape[1], shift, names, settings.shift_decimals)
        target = binary_path
        with binary_tmp.open("wb") as handle:
            write_binary(handle, matrix, shift, binary_path)
        os.replace(binary_tmp, binary_path)
        target = path
        os.replace(header_tmp, path)
    except OSError as err:
        raise FileAccessError(target, f"Can not write file: {err.strerror or err}") from err
    finally:
        _remove_files((header_tmp, binary_tmp))

    logger.debug(f"Wrote {matrix.shape[1]} points with {scalar_field_count} scalar fields to {path}")
    return path


def read_sbf(path: Path | str, strict_magic: bool | None = None) -> SBFFile:
    """
    Read an SBF file pair.

    The header file is parsed first, then the binary file `<path>.data`. Finally the
    values stored in both files are compared; differences are returned as warnings.
    The binary file determines the shape of the returned data.

    :param path: Path of the `.sbf` header file.
    :param strict_magic: Whether to check the magic bytes of the binary file. Defaults to
        the `strict_magic` setting.
    :returns: The parsed header, the parsed binary file and all warnings.
    :raises FileAccessError: If one of the files can not be read.
    :raises InvalidHeaderError: If one of the files does not identify itself as SBF.
    :raises TruncatedFileError: If the binary file is shorter than its header declares.
    """
    path = Path(path)
    settings = get_settings()
    header, header_warnings = read_header(path)

    binary_path = data_path(path)
    try:
        with binary_path.open("rb") as handle:
            payload = read_binary(
                handle,
                binary_path,
                strict_magic=settings.strict_magic if strict_magic is None else strict_magic,
            )
    except OSError as err:
        raise FileAccessError(binary_path, f"Can not read data file: {err.strerror or err}") from err

    warnings = compare_duplicate_entries(header, payload, shift_tolerance=settings.shift_tolerance)
    return SBFFile(header=header, payload=payload, warnings=header_warnings + warnings)


@log_railway_function(
    "Failed to read SBF file",
    "Successfully read SBF file",
)
@impure_safe
def load_sbf(path: Path, strict_magic: bool | None = None) -> SBFFile:
    """Read an SBF file pair, returning `IOSuccess(SBFFile)` or `IOFailure(SBFError)`."""
    return read_sbf(path, strict_magic=strict_magic)


@log_railway_function(
    "Failed to write SBF file",
    "Successfully written SBF file",
)
@impure_safe
def save_sbf(
    data: np.ndarray,
    path: Path,
    global_shift: GlobalShift | Sequence[float] = (0.0, 0.0, 0.0),
    scalar_field_names: Iterable[str] = (),
) -> Path:
    """Write an SBF file pair, returning `IOSuccess(Path)` or `IOFailure(SBFError)`."""
    return write_sbf(data, path, global_shift=global_shift, scalar_field_names=scalar_field_names)
