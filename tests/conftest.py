import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging():
    """Keep structlog at its defaults so capture_logs sees every event."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
