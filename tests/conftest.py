"""
Shared test configuration, fixtures, and markers for tilepyramid tests.
"""

import pytest
from hypothesis import strategies as st
from pyproj import CRS

from tilepyramid import CountingListener, Envelope, PyramidStore, StoreConfig


def pytest_configure(config):
    """Configure test markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (>1s)")
    config.addinivalue_line("markers", "property: marks property-based tests")
    config.addinivalue_line("markers", "unit: marks unit tests (fast, pure logic)")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def wgs84():
    return CRS.from_epsg(4326)


@pytest.fixture
def store():
    """Fresh in-memory store with a fixed identifier."""
    return StoreConfig(identifier="store-1").build_store()


@pytest.fixture
def listener(store):
    """Counting listener registered with ``store``."""
    counter = CountingListener()
    store.add_listener(counter)
    yield counter
    store.remove_listener(counter)


@st.composite
def envelopes_2d(draw):
    """Hypothesis strategy for valid 2-D envelopes with integral corners."""
    xs = sorted(draw(st.lists(st.integers(min_value=-1000, max_value=1000), min_size=2, max_size=2)))
    ys = sorted(draw(st.lists(st.integers(min_value=-1000, max_value=1000), min_size=2, max_size=2)))
    return Envelope(lower=(xs[0], ys[0]), upper=(xs[1], ys[1]))
