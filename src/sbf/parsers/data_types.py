"""Result containers of the SBF reader."""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import StrEnum, auto
from pathlib import Path
from typing import NamedTuple

import numpy as np
from pydantic import Field, model_validator

from sbf.models.base import COORDINATE_CHANNELS, FrozenBaseModel, PointMatrix

HEADER_MAGIC = "[SBF]"
DATA_SUFFIX = ".data"
HEADER_SUFFIX = ".sbf"

POINTS_KEY = "Points"
SF_COUNT_KEY = "SFCount"
GLOBAL_SHIFT_KEY = "GlobalShift"
SCALAR_FIELD_KEY = re.compile(r"SF(\d+)")


class HeaderKeyKind(StrEnum):
    GLOBAL_SHIFT = auto()
    SCALAR_FIELD = auto()
    NUMBER = auto()


def classify_key(key: str) -> HeaderKeyKind:
    """Determine how the value of a header line with the given key is interpreted."""
    if key == GLOBAL_SHIFT_KEY:
        return HeaderKeyKind.GLOBAL_SHIFT
    if SCALAR_FIELD_KEY.fullmatch(key):
        return HeaderKeyKind.SCALAR_FIELD
    return HeaderKeyKind.NUMBER


def scalar_field_index(key: str) -> int | None:
    """Return the 1-based index of an `SF<i>` key, e.g. `SF01` -> 1, or None for other keys."""
    match = SCALAR_FIELD_KEY.fullmatch(key)
    return int(match.group(1)) if match else None


def data_path(header_path: Path | str) -> Path:
    """Return the path of the binary file belonging to a header file, e.g. `a.sbf` -> `a.sbf.data`."""
    return Path(f"{header_path}{DATA_SUFFIX}")


class GlobalShift(FrozenBaseModel):
    """Offset to add to the stored single precision coordinates to get the original coordinates."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float] | np.ndarray) -> GlobalShift:
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size != 3:
            raise ValueError(f"Global shift must have exactly 3 components, but got {values.size}")
        return cls(x=float(values[0]), y=float(values[1]), z=float(values[2]))

    def as_tuple(self) -> tuple[float, float, float]:
        return self.x, self.y, self.z

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)

    def isclose(self, other: GlobalShift, atol: float = 0.0) -> bool:
        return bool(np.allclose(self.as_array(), other.as_array(), rtol=0.0, atol=atol, equal_nan=True))


class ScalarFieldDescriptor(FrozenBaseModel):
    name: str = Field(..., min_length=1)
    precision: str | None = None
    shift: float | None = None
    attributes: dict[str, str] = Field(default_factory=dict)


type HeaderValue = float | GlobalShift | ScalarFieldDescriptor


class SBFHeader(FrozenBaseModel):
    """
    Parsed content of an ASCII `.sbf` header file.

    `entries` holds one value per key in file order: a `GlobalShift` for the `GlobalShift` key,
    a `ScalarFieldDescriptor` for `SF<i>` keys and a float for any other key.
    """

    path: Path
    entries: dict[str, HeaderValue] = Field(default_factory=dict)

    def _number(self, key: str) -> int | None:
        value = self.entries.get(key)
        if not isinstance(value, float) or not value.is_integer():
            return None
        return int(value)

    @property
    def points(self) -> int | None:
        return self._number(POINTS_KEY)

    @property
    def scalar_field_count(self) -> int | None:
        return self._number(SF_COUNT_KEY)

    @property
    def global_shift(self) -> GlobalShift | None:
        value = self.entries.get(GLOBAL_SHIFT_KEY)
        return value if isinstance(value, GlobalShift) else None

    @property
    def scalar_fields(self) -> dict[int, ScalarFieldDescriptor]:
        """
        Scalar field descriptors keyed and ordered by their 1-based index.

        Keys such as `SF1` and `SF01` share an index; the parser keeps only the last of them.
        """
        fields = {
            index: value
            for key, value in self.entries.items()
            if isinstance(value, ScalarFieldDescriptor) and (index := scalar_field_index(key)) is not None
        }
        return dict(sorted(fields.items()))

    @property
    def scalar_field_names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.scalar_fields.values())


class SBFPayload(FrozenBaseModel):
    """Parsed content of a binary `.sbf.data` file."""

    path: Path
    point_count: int = Field(..., ge=0)
    scalar_field_count: int = Field(..., ge=0)
    global_shift: GlobalShift = Field(default_factory=GlobalShift)
    data: PointMatrix

    @model_validator(mode="after")
    def _check_shape(self) -> SBFPayload:
        expected = (COORDINATE_CHANNELS + self.scalar_field_count, self.point_count)
        if self.data.shape != expected:
            raise ValueError(f"Point matrix has shape {self.data.shape}, but the binary header declares {expected}")
        return self

    def duplicate_entries(self) -> dict[str, HeaderValue]:
        """The values that are stored in both the binary file and the ASCII header."""
        return {
            POINTS_KEY: float(self.point_count),
            SF_COUNT_KEY: float(self.scalar_field_count),
            GLOBAL_SHIFT_KEY: self.global_shift,
        }


class SBFWarning(NamedTuple):
    """A recoverable problem found while reading an SBF file pair."""

    path: Path
    line: int | None
    message: str

    def __str__(self) -> str:
        location = f"{self.path}:{self.line}" if self.line is not None else f"{self.path}"
        return f"{location}: {self.message}"


class SBFFile(NamedTuple):
    header: SBFHeader
    payload: SBFPayload
    warnings: tuple[SBFWarning, ...]
