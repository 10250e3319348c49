from enum import Enum
from functools import wraps
import logging
from typing import Any, Callable, Final
from itertools import chain

from loguru import logger
from returns.io import IOFailure, IOResult, IOSuccess
from returns.result import Failure, Result, Success

from sbf.exceptions import SBFError

VERBOSE: Final[bool] = False


def _debug_function_signature(func: Callable[..., Any], *args, **kwargs):
    """Log the function name and the arguments it is called with."""
    signature = ", ".join(
        chain(
            (repr(arg) for arg in args),
            (f"{key}={repr(value)}" for key, value in kwargs.items()),
        )
    )
    logger.debug(f"Calling {func.__name__}({signature})")


class FailureLevel(Enum):
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def describe_failure(failure_message: str, error: object) -> str:
    """
    Build the one-line failure message shown at the configured failure level.

    Errors from the SBF codec name the file they are about, so the message says which
    file of the pair failed, e.g. ``Failed to read SBF file: cloud.sbf.data``.
    """
    match error:
        case SBFError(path=path):
            return f"{failure_message}: {path}"
        case _:
            return failure_message


def log_failure(failure_message: str, failure_level: FailureLevel, error: object) -> None:
    logger.debug(f"{failure_message}: {type(error).__name__}: {error}")
    logger.log(failure_level.name, describe_failure(failure_message, error))


def log_railway_function(
    failure_message: str,
    success_message: str | None = None,
    failure_level: FailureLevel = FailureLevel.ERROR,
):
    """
    Log the outcome of a function returning a ``Result`` or ``IOResult`` container.

    On failure the error type and text are logged at DEBUG, followed by `failure_message`
    (with the offending path for SBF errors) at `failure_level`. On success
    `success_message` is logged at INFO, unless it is empty. Other return values pass
    through unlogged.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if VERBOSE:
                _debug_function_signature(func, *args, **kwargs)
            result = func(*args, **kwargs)
            match result:
                case IOSuccess() | Success():
                    if success_message:
                        logger.info(success_message)
                case IOFailure(Failure(error)) | Failure(error):
                    log_failure(failure_message, failure_level, error)
            return result

        return wrapper

    return decorator
