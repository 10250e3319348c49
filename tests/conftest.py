from collections.abc import Callable
from pathlib import Path
import logging

import numpy as np
import pytest
from loguru import logger

from sbf.settings import get_settings


class PropagateHandler(logging.Handler):
    """Handler that propagates loguru records to standard logging."""

    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


@pytest.fixture
def caplog(caplog):
    """Fixture to enable caplog to capture loguru logs."""
    handler_id = logger.add(PropagateHandler(), format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Make every test read the settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def point_matrix() -> np.ndarray:
    """Five points with two scalar fields: rows X, Y, Z, intensity, classification."""
    rng = np.random.default_rng(42)
    data = rng.uniform(-100.0, 100.0, size=(5, 5)).astype(np.float32)
    data[4] = np.arange(5, dtype=np.float32)
    return data


@pytest.fixture
def write_text(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a text file in the test directory and return its path."""

    def wrapper(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return wrapper
