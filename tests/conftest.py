"""Pytest configuration - minimal for unittest-based tests."""

import pytest

from vm_onoff.config import get_settings
from vm_onoff.tracing import EventTracer


@pytest.fixture(autouse=True)
def reset_cached_singletons():
    """Keep settings and tracer caches from leaking between tests."""
    get_settings.cache_clear()
    EventTracer.reset_instance()
    yield
    get_settings.cache_clear()
    EventTracer.reset_instance()
