import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep structlog config and contextvars from leaking between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
