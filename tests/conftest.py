"""Shared fixtures for catalog tests."""

import pytest

from src.catalog.client import CatalogClient
from src.catalog.config import CatalogConfig
from tests.fakes import DAY, FakeClock, FakeTransport


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def config():
    return CatalogConfig(
        api_key="TEST_KEY",
        rate_limit_per_hour=30,
        search_ttl_seconds=DAY,
        detail_ttl_seconds=30 * DAY,
    )


@pytest.fixture
def client(config, transport, clock):
    return CatalogClient(config, transport=transport, clock=clock)
