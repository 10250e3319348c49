"""Consistency check between the ASCII header and the binary payload.

The point count, scalar field count and global shift are stored in both files.
The binary file is the source of truth for the shape of the data, so any
disagreement is reported as a warning and never stops the reader.
"""

from collections.abc import Mapping

from loguru import logger

from .data_types import (
    GLOBAL_SHIFT_KEY,
    POINTS_KEY,
    SF_COUNT_KEY,
    GlobalShift,
    HeaderValue,
    SBFHeader,
    SBFPayload,
    SBFWarning,
)

DUPLICATE_ENTRIES = (POINTS_KEY, SF_COUNT_KEY, GLOBAL_SHIFT_KEY)


def _is_equal(header_value: HeaderValue, payload_value: HeaderValue, shift_tolerance: float) -> bool:
    match header_value, payload_value:
        case GlobalShift(), GlobalShift():
            return header_value.isclose(payload_value, atol=shift_tolerance)
        case float(), float():
            return header_value == payload_value
        case _:
            return False


def compare_duplicate_entries(
    header: SBFHeader, payload: SBFPayload, shift_tolerance: float = 0.0
) -> tuple[SBFWarning, ...]:
    """
    Compare the entries that are stored in both the header file and the binary file.

    :param header: The parsed ASCII header.
    :param payload: The parsed binary file.
    :param shift_tolerance: Absolute tolerance for the global shift components, which the
        header stores in fixed-point notation.
    :returns: One warning per entry that is missing from either file or differs between them.
    """
    payload_entries: Mapping[str, HeaderValue] = payload.duplicate_entries()
    warnings: list[SBFWarning] = []
    for entry in DUPLICATE_ENTRIES:
        if entry not in header.entries:
            warnings.append(SBFWarning(header.path, None, f"File does not contain the entry '{entry}'"))
            continue
        if entry not in payload_entries:
            warnings.append(SBFWarning(payload.path, None, f"File does not contain the entry '{entry}'"))
            continue
        if not _is_equal(header.entries[entry], payload_entries[entry], shift_tolerance):
            warnings.append(
                SBFWarning(
                    header.path,
                    None,
                    f"Values for '{entry}' in header file and data file are not the same: "
                    f"{header.entries[entry]} != {payload_entries[entry]}",
                )
            )

    for warning in warnings:
        logger.warning(str(warning))
    return tuple(warnings)
