"""ASCII header codec of the SBF format.

The header file is a small, loosely structured text file::

    [SBF]
    Points=<point count>
    GlobalShift=<x>, <y>, <z>
    SFCount=<scalar field count>
    SF1=<name>[,p=<precision>][,s=<shift>]
    ...

Only the first line is mandatory. Every other line is a `key=value` pair whose
value is interpreted depending on the key, see :func:`classify_key`. Lines that
can not be interpreted are reported as warnings and do not stop the parser.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import NamedTuple, TextIO

from loguru import logger

from sbf.exceptions import FileAccessError, InvalidHeaderError

from .data_types import (
    GLOBAL_SHIFT_KEY,
    HEADER_MAGIC,
    POINTS_KEY,
    SF_COUNT_KEY,
    GlobalShift,
    HeaderKeyKind,
    HeaderValue,
    SBFHeader,
    SBFWarning,
    ScalarFieldDescriptor,
    classify_key,
    scalar_field_index,
)


class HeaderParseResult(NamedTuple):
    header: SBFHeader
    warnings: tuple[SBFWarning, ...]


def format_header(
    point_count: int,
    global_shift: GlobalShift,
    scalar_field_names: Sequence[str],
    shift_decimals: int = 6,
) -> str:
    """
    Render the content of an ASCII header file.

    Precision and shift attributes of scalar fields are never written.

    :param point_count: The number of points in the binary file.
    :param global_shift: The global shift of the point coordinates.
    :param scalar_field_names: One name per scalar field, in channel order.
    :param shift_decimals: The number of decimals of the global shift components.
    :returns: The header text, each line terminated by a newline.
    """
    shift = ", ".join(f"{value:.{shift_decimals}f}" for value in global_shift.as_tuple())
    lines = [
        HEADER_MAGIC,
        f"{POINTS_KEY}={point_count}",
        f"{GLOBAL_SHIFT_KEY}={shift}",
        f"{SF_COUNT_KEY}={len(scalar_field_names)}",
        *(f"SF{index}={name}" for index, name in enumerate(scalar_field_names, start=1)),
    ]
    return "".join(f"{line}\n" for line in lines)


def write_header(
    handle: TextIO,
    point_count: int,
    global_shift: GlobalShift,
    scalar_field_names: Sequence[str],
    shift_decimals: int = 6,
) -> None:
    handle.write(format_header(point_count, global_shift, scalar_field_names, shift_decimals))


class _HeaderParser:
    """Line based parser collecting header entries and the problems it finds on the way."""

    def __init__(self, path: Path):
        self.path = path
        self.entries: dict[str, HeaderValue] = {}
        self.warnings: list[SBFWarning] = []
        self._scalar_field_keys: dict[int, str] = {}
        self._line_number = 0

    def warn(self, message: str) -> None:
        warning = SBFWarning(self.path, self._line_number, message)
        logger.warning(str(warning))
        self.warnings.append(warning)

    def feed(self, line_number: int, raw_line: str) -> None:
        self._line_number = line_number
        line = raw_line.strip()
        if not line:
            return
        key, separator, value = line.partition("=")
        if not separator:
            self.warn(f"Can not interpret line '{line}'")
            return
        key, value = key.strip(), value.strip()

        match classify_key(key):
            case HeaderKeyKind.GLOBAL_SHIFT:
                if (shift := self._parse_global_shift(value)) is not None:
                    self.entries[key] = shift
            case HeaderKeyKind.SCALAR_FIELD:
                if (descriptor := self._parse_scalar_field(key, value)) is not None:
                    self._add_scalar_field(key, descriptor)
            case HeaderKeyKind.NUMBER:
                self.entries[key] = self._parse_number(key, value)

    def _add_scalar_field(self, key: str, descriptor: ScalarFieldDescriptor) -> None:
        index = scalar_field_index(key)
        previous = self._scalar_field_keys.get(index)
        if previous is not None and previous != key:
            self.warn(f"Scalar field '{key}' replaces '{previous}', both have index {index}")
            del self.entries[previous]
        self._scalar_field_keys[index] = key
        self.entries[key] = descriptor

    def _parse_number(self, key: str, value: str) -> float:
        try:
            return float(value)
        except ValueError:
            self.warn(f"Value '{value}' of '{key}' is not a number")
            return float("nan")

    def _parse_global_shift(self, value: str) -> GlobalShift | None:
        try:
            return GlobalShift.from_sequence([float(token) for token in value.split(",")])
        except ValueError:
            self.warn(f"Can not interpret '{value}' as a global shift of three numbers")
            return None

    def _parse_scalar_field(self, key: str, value: str) -> ScalarFieldDescriptor | None:
        name, *options = (token.strip() for token in value.split(","))
        if not name:
            self.warn(f"Scalar field '{key}' has no name")
            return None

        precision: str | None = None
        shift: float | None = None
        attributes: dict[str, str] = {}
        for option in filter(None, options):
            attribute, _, attribute_value = option.partition("=")
            attribute, attribute_value = attribute.strip(), attribute_value.strip()
            match attribute:
                case "s":
                    try:
                        shift = float(attribute_value)
                    except ValueError:
                        self.warn(f"Shift '{attribute_value}' of scalar field '{key}' is not a number")
                case "p":
                    precision = attribute_value
                case _:
                    attributes[attribute] = attribute_value
        return ScalarFieldDescriptor(name=name, precision=precision, shift=shift, attributes=attributes)

    def result(self) -> HeaderParseResult:
        return HeaderParseResult(SBFHeader(path=self.path, entries=self.entries), tuple(self.warnings))


def is_header_magic(line: str | None) -> bool:
    return line is not None and line.strip().casefold() == HEADER_MAGIC.casefold()


def parse_header(lines: Iterable[str], path: Path | str) -> HeaderParseResult:
    """
    Parse the lines of an ASCII header file.

    The first line must be the `[SBF]` marker (case-insensitive). All other lines are
    interpreted independently of each other; problems with a single line are returned
    as warnings together with whatever could be recovered from the other lines.

    :param lines: The lines of the header file, including the marker line.
    :param path: The path of the header file, used in warnings and errors.
    :returns: The parsed header and the warnings collected while parsing.
    :raises InvalidHeaderError: If the first line is not the `[SBF]` marker.
    """
    path = Path(path)
    lines = iter(lines)
    if not is_header_magic(next(lines, None)):
        raise InvalidHeaderError(path, f"File does not contain '{HEADER_MAGIC}' on the first line")

    parser = _HeaderParser(path)
    for line_number, line in enumerate(lines, start=2):
        parser.feed(line_number, line)
    return parser.result()


def read_header(path: Path | str) -> HeaderParseResult:
    """
    Read and parse an ASCII header file.

    :param path: The path of the `.sbf` header file.
    :returns: The parsed header and the warnings collected while parsing.
    :raises FileAccessError: If the file can not be opened or read.
    :raises InvalidHeaderError: If the first line is not the `[SBF]` marker.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8-sig", errors="replace") as handle:
            result = parse_header(handle, path)
    except OSError as err:
        raise FileAccessError(path, f"Can not read header file: {err.strerror or err}") from err

    logger.debug(f"Parsed {len(result.header.entries)} header entries from {path}")
    return result
