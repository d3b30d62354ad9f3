"""Sync orchestrator — gathers every resolver input for one site.

The site settings sync and the system plugins sync are independent, so they
run concurrently and are joined before anything else happens. Accounts and
the cash-on-delivery gateway depend on the plugin inventory, so they are
fetched afterwards (again concurrently).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from src.diagnostics.events import emit
from src.integrations.errors import StoreGatewayError, is_connectivity_error
from src.onboarding.plugins import default_country_support
from src.onboarding.selection import PluginSelectionCoordinator
from src.onboarding.skip_flags import SkipFlagStore
from src.schemas.events import EventType, SystemEvent
from src.schemas.onboarding import (
    CountrySupportConfiguration,
    GenericFailure,
    NoConnection,
    OnboardingOutcome,
    OnboardingSnapshot,
)

if TYPE_CHECKING:
    from src.integrations.woocommerce.gateway import RemoteStoreGateway

logger = logging.getLogger(__name__)


async def classify_failure(site_id: int, failures: Sequence[BaseException], stage: str) -> OnboardingOutcome:
    """Map sync failures to an outcome: any connectivity error wins over the rest."""
    no_connection = any(is_connectivity_error(f) for f in failures)
    outcome: OnboardingOutcome = NoConnection() if no_connection else GenericFailure()

    for failure in failures:
        logger.warning("Onboarding %s failed for site %s: %s: %s", stage, site_id, type(failure).__name__, failure)

    await emit(SystemEvent(
        event_type=EventType.ONBOARDING_SYNC_FAILED,
        site_id=site_id,
        data={
            "stage": stage,
            "errors": [type(f).__name__ for f in failures],
            "outcome": outcome.kind.value,
        },
        source_module="onboarding.sync",
    ))
    return outcome


class SyncOrchestrator:
    """Fans out the remote synchronizations and assembles an OnboardingSnapshot."""

    def __init__(
        self,
        gateway: RemoteStoreGateway,
        skip_flags: SkipFlagStore,
        selection: PluginSelectionCoordinator,
        country_support: CountrySupportConfiguration | None = None,
    ) -> None:
        self._gateway = gateway
        self._skip_flags = skip_flags
        self._selection = selection
        self._country_support = country_support or default_country_support()

    async def synchronize(self, site_id: int) -> OnboardingSnapshot | OnboardingOutcome:
        """Return a complete snapshot, or the failure outcome if any remote call failed."""
        # Barrier over exactly two tasks: both must finish before we look at either.
        results = await asyncio.gather(
            self._gateway.synchronize_site_settings(site_id),
            self._gateway.synchronize_system_plugins(site_id),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, Exception):
                raise failure
        if failures:
            return await classify_failure(site_id, failures, "sync")

        try:
            return await self._gather_snapshot(site_id)
        except StoreGatewayError as exc:
            return await classify_failure(site_id, [exc], "accounts")

    async def _gather_snapshot(self, site_id: int) -> OnboardingSnapshot:
        country = self._gateway.get_store_country(site_id)
        inventory = self._gateway.get_plugin_inventory(site_id)
        installed = inventory.installed_plugins

        accounts, cod_enabled = await asyncio.gather(
            self._gateway.load_payment_gateway_accounts(site_id, installed),
            self._gateway.load_cash_on_delivery_enabled(site_id),
        )
        skip_flags = await self._skip_flags.snapshot(site_id)
        selection = await self._selection.load_selection()

        # Accounts that cannot take card-present payments are treated as absent.
        eligible = {a.plugin: a for a in accounts if a.is_card_present_eligible}
        for account in accounts:
            if not account.is_card_present_eligible:
                logger.info("Ignoring %s account for site %s: not card-present eligible", account.plugin.value, site_id)

        return OnboardingSnapshot(
            site_id=site_id,
            country=country,
            country_support=self._country_support,
            inventory=inventory,
            accounts=eligible,
            cod_gateway_enabled=cod_enabled,
            skip_flags=skip_flags,
            selection=selection,
        )
