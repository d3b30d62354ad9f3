"""Shared fixtures: an in-memory store gateway."""

from __future__ import annotations

import pytest

from src.integrations.errors import StoreConnectionError
from src.models.enums import Plugin
from tests.factories import FakeStoreGateway


@pytest.fixture()
def gateway() -> FakeStoreGateway:
    """A store with only the primary plugin, installed, active and fully onboarded."""
    fake = FakeStoreGateway()
    fake.install(Plugin.PRIMARY)
    fake.set_account(Plugin.PRIMARY)
    return fake


@pytest.fixture()
def offline_gateway(gateway: FakeStoreGateway) -> FakeStoreGateway:
    gateway.errors["synchronize_site_settings"] = StoreConnectionError("offline")
    return gateway
