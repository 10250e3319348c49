"""Reader and writer for SBF point clouds (ASCII header + binary payload)."""

from .container_models import PointCloud
from .exceptions import (
    FileAccessError,
    FormatLimitExceededError,
    InvalidArgumentError,
    InvalidHeaderError,
    SBFError,
    TruncatedFileError,
)
from .parsers import (
    GlobalShift,
    SBFFile,
    SBFHeader,
    SBFPayload,
    SBFWarning,
    ScalarFieldDescriptor,
    load_sbf,
    read_sbf,
    save_sbf,
    write_sbf,
)

__all__ = (
    "FileAccessError",
    "FormatLimitExceededError",
    "GlobalShift",
    "InvalidArgumentError",
    "InvalidHeaderError",
    "PointCloud",
    "SBFError",
    "SBFFile",
    "SBFHeader",
    "SBFPayload",
    "SBFWarning",
    "ScalarFieldDescriptor",
    "TruncatedFileError",
    "load_sbf",
    "read_sbf",
    "save_sbf",
    "write_sbf",
)
