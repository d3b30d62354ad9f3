"""Preferred-plugin selection with deferred persistence.

When both plugins are viable the merchant picks one. The choice is used
immediately for the current session but only persisted once a resolution
confirms it: the first published ``completed`` outcome for that plugin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.diagnostics.events import emit
from src.integrations.errors import StoreGatewayError
from src.models.enums import Plugin
from src.onboarding.plugins import PLUGIN_CAPABILITIES, plugin_for_gateway_id
from src.onboarding.publisher import OutcomePublisher
from src.schemas.events import EventType, SystemEvent
from src.schemas.onboarding import Completed, OnboardingOutcome, PluginSelection

if TYPE_CHECKING:
    from src.integrations.woocommerce.gateway import RemoteStoreGateway

logger = logging.getLogger(__name__)


class PluginSelectionCoordinator:
    """Tracks the preferred plugin and persists it once confirmed.

    The pending confirmation is a one-shot slot: armed by ``select_plugin``,
    consumed (and the publisher subscription dropped) by the first matching
    completed outcome, or disarmed by ``clear_selection``. A failed write
    re-arms the slot so the next matching completion tries again.
    """

    def __init__(self, gateway: RemoteStoreGateway, site_id: int, publisher: OutcomePublisher) -> None:
        self._gateway = gateway
        self._site_id = site_id
        self._publisher = publisher
        self._local_preference: Plugin | None = None
        self._pending_confirmation: Plugin | None = None
        self._subscribed = False

    @property
    def local_preference(self) -> Plugin | None:
        return self._local_preference

    @property
    def pending_confirmation(self) -> Plugin | None:
        return self._pending_confirmation

    def select_plugin(self, plugin: Plugin) -> None:
        """Use ``plugin`` from now on and persist it after the next matching completion."""
        self._disarm()
        self._local_preference = plugin
        self._arm(plugin)
        logger.info("Plugin %s selected for site %s (awaiting confirmation)", plugin.value, self._site_id)

    async def clear_selection(self) -> None:
        """Drop both the session choice and the persisted preference."""
        self._local_preference = None
        self._disarm()
        await self._gateway.forget_preferred_gateway(self._site_id)
        await emit(SystemEvent(
            event_type=EventType.PLUGIN_SELECTION_CLEARED,
            site_id=self._site_id,
            source_module="onboarding.selection",
        ))

    async def load_selection(self) -> PluginSelection:
        """Current selection as resolver input; the persisted side is read each time."""
        stored = await self._gateway.get_preferred_gateway(self._site_id)
        persisted = plugin_for_gateway_id(stored)
        if stored and persisted is None:
            logger.warning("Ignoring unknown persisted gateway %r for site %s", stored, self._site_id)
        return PluginSelection(local_preference=self._local_preference, persisted_preference=persisted)

    def _arm(self, plugin: Plugin) -> None:
        self._pending_confirmation = plugin
        if not self._subscribed:
            self._publisher.subscribe(self._confirm_selection)
            self._subscribed = True

    def _disarm(self) -> None:
        self._pending_confirmation = None
        if self._subscribed:
            self._publisher.unsubscribe(self._confirm_selection)
            self._subscribed = False

    async def _confirm_selection(self, outcome: OnboardingOutcome) -> None:
        plugin = self._pending_confirmation
        if plugin is None or not isinstance(outcome, Completed) or outcome.preferred_plugin != plugin:
            return

        # Disarm before awaiting so a concurrent publication cannot persist twice.
        self._disarm()
        gateway_id = PLUGIN_CAPABILITIES[plugin].gateway_id
        try:
            await self._gateway.set_preferred_gateway(self._site_id, gateway_id)
        except StoreGatewayError as exc:
            logger.warning("Could not persist preferred plugin %s for site %s: %s", plugin.value, self._site_id, exc)
            # Retry on the next matching completion unless the choice changed meanwhile.
            if self._pending_confirmation is None and self._local_preference == plugin:
                self._arm(plugin)
            return
        logger.info("Preferred plugin %s persisted for site %s", plugin.value, self._site_id)
        await emit(SystemEvent(
            event_type=EventType.PREFERRED_PLUGIN_PERSISTED,
            site_id=self._site_id,
            data={"plugin": plugin.value, "gateway_id": gateway_id},
            source_module="onboarding.selection",
        ))
