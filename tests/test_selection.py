"""Tests for the plugin selection coordinator.

Covers:
- Local preference is used immediately; persistence waits for a matching completion
- The pending confirmation persists exactly once
- Clearing disarms the confirmation and forgets the persisted preference
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from src.integrations.errors import SettingsStoreError
from src.models.enums import Plugin
from src.onboarding.publisher import OutcomePublisher
from src.onboarding.selection import PluginSelectionCoordinator
from src.schemas.onboarding import Completed, GenericFailure, PluginSelection
from tests.factories import SITE_ID

SECONDARY_DONE = Completed(
    preferred_plugin=Plugin.SECONDARY,
    available_plugins=(Plugin.PRIMARY, Plugin.SECONDARY),
)
PRIMARY_DONE = Completed(
    preferred_plugin=Plugin.PRIMARY,
    available_plugins=(Plugin.PRIMARY, Plugin.SECONDARY),
)


@pytest.fixture()
def publisher():
    return OutcomePublisher()


@pytest.fixture()
def coordinator(gateway, publisher):
    return PluginSelectionCoordinator(gateway, SITE_ID, publisher)


class TestSelectPlugin:
    def test_sets_local_preference_and_arms_confirmation(self, coordinator, publisher):
        coordinator.select_plugin(Plugin.SECONDARY)
        assert coordinator.local_preference == Plugin.SECONDARY
        assert coordinator.pending_confirmation == Plugin.SECONDARY
        assert publisher.subscriber_count == 1

    @pytest.mark.asyncio()
    async def test_not_persisted_before_completion(self, coordinator, publisher, gateway):
        coordinator.select_plugin(Plugin.SECONDARY)
        await publisher.publish(GenericFailure())
        await publisher.publish(PRIMARY_DONE)
        assert gateway.preferred_gateway_writes == []
        assert coordinator.pending_confirmation == Plugin.SECONDARY

    @pytest.mark.asyncio()
    async def test_persisted_exactly_once(self, coordinator, publisher, gateway):
        coordinator.select_plugin(Plugin.SECONDARY)
        with patch("src.onboarding.selection.emit", new_callable=AsyncMock) as mock_emit:
            await publisher.publish(SECONDARY_DONE)
            await publisher.publish(SECONDARY_DONE)
            await publisher.publish(SECONDARY_DONE)

        assert gateway.preferred_gateway_writes == ["woocommerce-stripe"]
        assert coordinator.pending_confirmation is None
        assert publisher.subscriber_count == 0
        mock_emit.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_failed_write_retried_on_next_completion(self, coordinator, publisher, gateway):
        gateway.errors["set_preferred_gateway"] = SettingsStoreError("redis down")
        coordinator.select_plugin(Plugin.SECONDARY)

        await publisher.publish(SECONDARY_DONE)

        assert gateway.preferred_gateway is None
        assert coordinator.pending_confirmation == Plugin.SECONDARY
        assert publisher.subscriber_count == 1

        del gateway.errors["set_preferred_gateway"]
        await publisher.publish(SECONDARY_DONE)

        assert gateway.preferred_gateway == "woocommerce-stripe"
        assert coordinator.pending_confirmation is None
        assert publisher.subscriber_count == 0

    @pytest.mark.asyncio()
    async def test_failed_write_not_retried_after_clear(self, coordinator, publisher, gateway):
        gateway.errors["set_preferred_gateway"] = SettingsStoreError("redis down")
        coordinator.select_plugin(Plugin.SECONDARY)
        await publisher.publish(SECONDARY_DONE)

        del gateway.errors["set_preferred_gateway"]
        await coordinator.clear_selection()
        await publisher.publish(SECONDARY_DONE)

        assert gateway.preferred_gateway_writes == []

    def test_reselect_keeps_single_subscription(self, coordinator, publisher):
        coordinator.select_plugin(Plugin.SECONDARY)
        coordinator.select_plugin(Plugin.PRIMARY)
        assert publisher.subscriber_count == 1
        assert coordinator.pending_confirmation == Plugin.PRIMARY


class TestClearSelection:
    @pytest.mark.asyncio()
    async def test_clears_everything(self, coordinator, publisher, gateway):
        gateway.preferred_gateway = "woocommerce-payments"
        coordinator.select_plugin(Plugin.SECONDARY)

        await coordinator.clear_selection()

        assert coordinator.local_preference is None
        assert coordinator.pending_confirmation is None
        assert publisher.subscriber_count == 0
        assert gateway.preferred_gateway is None

    @pytest.mark.asyncio()
    async def test_no_persistence_after_clear(self, coordinator, publisher, gateway):
        coordinator.select_plugin(Plugin.SECONDARY)
        await coordinator.clear_selection()
        await publisher.publish(SECONDARY_DONE)
        assert gateway.preferred_gateway_writes == []


class TestLoadSelection:
    @pytest.mark.asyncio()
    async def test_reads_persisted_preference(self, coordinator, gateway):
        gateway.preferred_gateway = "woocommerce-payments"
        assert await coordinator.load_selection() == PluginSelection(persisted_preference=Plugin.PRIMARY)

    @pytest.mark.asyncio()
    async def test_local_and_persisted(self, coordinator, gateway):
        gateway.preferred_gateway = "woocommerce-payments"
        coordinator.select_plugin(Plugin.SECONDARY)
        selection = await coordinator.load_selection()
        assert selection.local_preference == Plugin.SECONDARY
        assert selection.preferred == Plugin.SECONDARY

    @pytest.mark.asyncio()
    async def test_unknown_gateway_ignored(self, coordinator, gateway):
        gateway.preferred_gateway = "paypal"
        assert await coordinator.load_selection() == PluginSelection()
