"""
Shared pytest fixtures for OpenCSP tests.
"""

from pathlib import Path

import pytest

from opencsp.config import OpenCSPConfig
from opencsp.core.instance import CuttingStockInstance
from opencsp.core.order import OrderWidthRegistry
from opencsp.core.pattern import PatternRegistry


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture
def data_path():
    """Path to test data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def bpplib_path(data_path):
    """Path to BPPLIB data."""
    return data_path / "bpplib"


@pytest.fixture
def three_widths():
    """Widths {5, 7, 3} with duals {2, 3, 1} on a roll of width 10."""
    orders = OrderWidthRegistry.from_lists([5, 7, 3], [4, 2, 6], max_pattern_width=10)
    orders.set_dual_values([2.0, 3.0, 1.0])
    return orders


@pytest.fixture
def registry():
    """Empty pattern registry."""
    return PatternRegistry()


@pytest.fixture
def dp_settings():
    return OpenCSPConfig(pricing_strategy="dp")


@pytest.fixture
def ip_settings():
    return OpenCSPConfig(pricing_strategy="ip")


@pytest.fixture
def simple_csp_instance():
    """A simple CSP instance for testing."""
    return CuttingStockInstance(
        roll_width=100,
        item_sizes=[45, 36, 31, 14],
        item_demands=[10, 10, 10, 10],
        name="test_csp"
    )
