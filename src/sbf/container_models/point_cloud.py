"""Point cloud container.

Architecture
------------
::

    +--------------------------------------------+
    |                 PointCloud                 |
    |--------------------------------------------|
    | data               : PointMatrix           |
    | global_shift       : GlobalShift           |
    | scalar_field_names : tuple[str, ...]       |
    | point_count        : int (columns)         |
    | scalar_field_count : int (rows - 3)        |
    +--------------------------------------------+
    | from_sbf(path) -> cls                      |
    | to_sbf(path) -> Path                       |
    | coordinates -> (3, N) float32              |
    | world_coordinates -> (3, N) float64        |
    | scalar_field(name) -> (N,) float32         |
    +--------------------------------------------+

- Rows are channels and columns are points, the same layout the SBF format uses.
- The first three rows are X, Y and Z; the remaining rows are the scalar fields,
  named by `scalar_field_names` in the same order.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from pydantic import Field, model_validator

from sbf.models.base import COORDINATE_CHANNELS, FrozenBaseModel, PointMatrix
from sbf.parsers import GlobalShift, read_sbf, write_sbf


class PointCloud(FrozenBaseModel):
    data: PointMatrix
    global_shift: GlobalShift = Field(default_factory=GlobalShift)
    scalar_field_names: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_scalar_field_names(self) -> PointCloud:
        if len(self.scalar_field_names) != self.scalar_field_count:
            raise ValueError(
                f"Expected {self.scalar_field_count} scalar field name(s), got {len(self.scalar_field_names)}"
            )
        return self

    @property
    def point_count(self) -> int:
        """The number of points (columns)."""
        return self.data.shape[1]

    @property
    def scalar_field_count(self) -> int:
        """The number of scalar fields (rows after X, Y and Z)."""
        return self.data.shape[0] - COORDINATE_CHANNELS

    @property
    def coordinates(self) -> np.ndarray:
        """The stored X, Y and Z coordinates, shape (3, N)."""
        return self.data[:COORDINATE_CHANNELS]

    @property
    def world_coordinates(self) -> np.ndarray:
        """The coordinates in double precision with the global shift added back, shape (3, N)."""
        return self.coordinates.astype(np.float64) + self.global_shift.as_array()[:, np.newaxis]

    def scalar_field(self, name: str) -> np.ndarray:
        """Return the values of the scalar field with the given name, shape (N,)."""
        try:
            index = self.scalar_field_names.index(name)
        except ValueError:
            raise KeyError(f"Unknown scalar field '{name}', available: {self.scalar_field_names}") from None
        return self.data[COORDINATE_CHANNELS + index]

    @classmethod
    def from_sbf(cls, path: Path | str, strict_magic: bool | None = None) -> PointCloud:
        """
        Load a point cloud from an SBF file pair.

        The data and global shift come from the binary file. Scalar field names come from
        the header; fields without a name in the header are called `SF<i>`.
        """
        sbf_file = read_sbf(path, strict_magic=strict_magic)
        named = sbf_file.header.scalar_fields
        return cls(
            data=sbf_file.payload.data,
            global_shift=sbf_file.payload.global_shift,
            scalar_field_names=tuple(
                named[index].name if index in named else f"SF{index}"
                for index in range(1, sbf_file.payload.scalar_field_count + 1)
            ),
        )

    def to_sbf(self, path: Path | str) -> Path:
        """Write the point cloud to `path` (must end with `.sbf`) and `path` + `.data`."""
        return write_sbf(
            self.data,
            path,
            global_shift=self.global_shift,
            scalar_field_names=self.scalar_field_names,
        )
