from pathlib import Path


class SBFError(Exception):
    """Base class for all errors raised while reading or writing SBF files."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{message} ({self.path})")


class InvalidArgumentError(SBFError, ValueError):
    """Raised when the caller's input violates the writer's input contract."""


class FileAccessError(SBFError, OSError):
    """Raised when a file cannot be opened, read or written."""


class InvalidHeaderError(SBFError):
    """Raised when a file does not identify itself as SBF."""


class TruncatedFileError(SBFError):
    """Raised when the binary payload is shorter than its header declares."""


class FormatLimitExceededError(SBFError, ValueError):
    """Raised when a value does not fit in its fixed-width binary field."""
