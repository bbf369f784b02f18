"""Shared pytest fixtures."""

from collections.abc import Generator

import pytest

from fetchplus.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None, None, None]:
    """Reset fetch metrics around every test."""
    FetchMetrics.reset()
    yield
    FetchMetrics.reset()
