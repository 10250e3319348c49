from __future__ import annotations
from collections.abc import Sequence
from functools import partial
from typing import Annotated

from numpy import asarray, float32, number
from numpy.typing import DTypeLike, NDArray
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, PlainSerializer

# Rows 0, 1 and 2 of a point matrix are always X, Y and Z.
COORDINATE_CHANNELS = 3


class FrozenBaseModel(BaseModel):
    """Base class for frozen Pydantic models."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


def serialize_ndarray[T: number](array_: NDArray[T]) -> list:
    """Serialize numpy array to a Python list for JSON serialization."""
    return array_.tolist()


def coerce_to_array[T: number](dtype: DTypeLike, value: Sequence | NDArray[T]) -> NDArray[T]:
    """
    Coerce input to a numpy array of the given dtype.

    Big-endian arrays read straight from disk are converted to the native byte order.
    """
    try:
        return asarray(value, dtype=dtype)
    except (OverflowError, TypeError) as err:
        raise ValueError(f"Value can not be converted to an array of {dtype}") from err


def validate_shape(n_dims: int, value: NDArray) -> NDArray:
    if (array_dims := len(value.shape)) != n_dims:
        raise ValueError(f"Array shape mismatch, expected {n_dims} dimension(s), but got {array_dims}")
    return value


def validate_channels(value: NDArray) -> NDArray:
    if value.shape[0] < COORDINATE_CHANNELS:
        raise ValueError(
            f"Point matrix must have at least {COORDINATE_CHANNELS} rows (X, Y, Z), but got {value.shape[0]}"
        )
    return value


type Float32Array = Annotated[
    NDArray[float32],
    BeforeValidator(partial(coerce_to_array, float32)),
    PlainSerializer(serialize_ndarray),
]

# Shape: (3 + scalar field count, point count)
type PointMatrix = Annotated[
    Float32Array,
    AfterValidator(partial(validate_shape, 2)),
    AfterValidator(validate_channels),
]
