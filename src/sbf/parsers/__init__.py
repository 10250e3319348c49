"""
Reading and writing of point clouds in the SBF format.

An SBF point cloud consists of two files that are always used together:

1. **Header** (`<name>.sbf`): an ASCII file with `key=value` lines describing the cloud
2. **Data** (`<name>.sbf.data`): a binary file with a 64 byte header followed by the points

File Format Support
-------------------
**Reading** (via read_sbf / load_sbf):
- Header lines that can not be interpreted are reported as warnings, not errors
- Point count, scalar field count and global shift are cross-checked between both files
- The binary file is authoritative for the shape of the returned data

**Writing** (via write_sbf / save_sbf):
- The input is validated before any file is created
- Scalar field precision (`p=`) and shift (`s=`) attributes are not written

Railway Integration
-------------------
`read_sbf` and `write_sbf` raise an `SBFError` subclass on failure. Their counterparts
`load_sbf` and `save_sbf` return IOResult containers instead and log their outcome,
so they can be used directly in functional pipelines.
"""

from .data_types import GlobalShift, SBFFile, SBFHeader, SBFPayload, SBFWarning, ScalarFieldDescriptor
from .sbf import load_sbf, read_sbf, save_sbf, write_sbf

__all__ = (
    "GlobalShift",
    "SBFFile",
    "SBFHeader",
    "SBFPayload",
    "SBFWarning",
    "ScalarFieldDescriptor",
    "load_sbf",
    "read_sbf",
    "save_sbf",
    "write_sbf",
)
