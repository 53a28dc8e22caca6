"""
Pytest configuration for tendril tests.

This file ensures src/ is in sys.path for all tests and keeps the static
Logger isolated between tests.
"""

import sys
import os

import pytest

# Add src/ to sys.path for imports
_src_root = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if _src_root not in sys.path:
    sys.path.insert(0, _src_root)

from tendril.logger import Logger, MemoryStrategy


@pytest.fixture(autouse=True)
def _reset_logger():
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def memory_log():
    """Route Logger output into memory for the duration of a test."""
    strategy = MemoryStrategy()
    Logger.set_log_storage_strategy(strategy)
    return strategy
