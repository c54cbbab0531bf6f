"""
Pytest configuration.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api modules, and provides the
catalog/order/fulfillment fakes shared by the finalizer, gateway and API tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fakes import (  # noqa: E402
    InMemoryCatalogStore,
    InMemoryOrderStore,
    RecordingFulfillmentClient,
    make_item,
)


@pytest.fixture
def catalog() -> InMemoryCatalogStore:
    return InMemoryCatalogStore([make_item("X")])


@pytest.fixture
def orders() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def fulfillment() -> RecordingFulfillmentClient:
    return RecordingFulfillmentClient()
