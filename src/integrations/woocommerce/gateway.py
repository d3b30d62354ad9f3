"""Remote store gateway — the onboarding engine's only door to the outside world.

RemoteStoreGateway is the contract the engine depends on; WooCommerceStoreGateway
implements it with the REST client, the Redis settings store and an
in-process copy of the last synchronized site data.
"""

from __future__ import annotations

import logging
from typing import Protocol

from src.db.settings_store import AppSettingsStore
from src.diagnostics.events import emit
from src.integrations.errors import StoreAPIError
from src.integrations.woocommerce.client import WooCommerceClient
from src.integrations.woocommerce.schemas import (
    CASH_ON_DELIVERY_GATEWAY_ID,
    GatewayAccountPayload,
    build_inventory,
    parse_store_country,
)
from src.models.enums import Plugin
from src.onboarding.plugins import PLUGIN_CAPABILITIES
from src.schemas.events import EventType, SystemEvent
from src.schemas.onboarding import AccountSnapshot, PluginInventorySnapshot

logger = logging.getLogger(__name__)


class RemoteStoreGateway(Protocol):
    """Everything the onboarding engine needs from the store and the device settings."""

    async def synchronize_site_settings(self, site_id: int) -> None: ...

    async def synchronize_system_plugins(self, site_id: int) -> None: ...

    def get_store_country(self, site_id: int) -> str | None: ...

    def get_plugin_inventory(self, site_id: int) -> PluginInventorySnapshot: ...

    async def load_payment_gateway_accounts(self, site_id: int, plugins: list[Plugin]) -> list[AccountSnapshot]: ...

    async def load_cash_on_delivery_enabled(self, site_id: int) -> bool: ...

    async def enable_cash_on_delivery(self, site_id: int) -> None: ...

    async def bind_active_account(self, site_id: int, account: AccountSnapshot) -> None: ...

    async def install_plugin(self, site_id: int, slug: str) -> None: ...

    async def activate_plugin(self, site_id: int, name: str) -> None: ...

    async def get_preferred_gateway(self, site_id: int) -> str | None: ...

    async def set_preferred_gateway(self, site_id: int, gateway_id: str) -> None: ...

    async def forget_preferred_gateway(self, site_id: int) -> None: ...

    async def get_cod_step_skipped(self, site_id: int) -> bool: ...

    async def set_cod_step_skipped(self, site_id: int, skipped: bool) -> None: ...


class WooCommerceStoreGateway:
    """RemoteStoreGateway backed by the WooCommerce REST API and Redis."""

    def __init__(self, client: WooCommerceClient, settings_store: AppSettingsStore) -> None:
        self._client = client
        self._settings = settings_store
        self._countries: dict[int, str | None] = {}
        self._inventories: dict[int, PluginInventorySnapshot] = {}
        self._active_accounts: dict[int, AccountSnapshot] = {}

    # ── Synchronization ──────────────────────────────────────────────

    async def synchronize_site_settings(self, site_id: int) -> None:
        options = await self._client.fetch_general_settings()
        self._countries[site_id] = parse_store_country(options)
        logger.debug("Site %s settings synchronized (country=%s)", site_id, self._countries[site_id])

    async def synchronize_system_plugins(self, site_id: int) -> None:
        status = await self._client.fetch_system_status()
        paths = {plugin: caps.plugin_path for plugin, caps in PLUGIN_CAPABILITIES.items()}
        self._inventories[site_id] = build_inventory(status, paths)
        logger.debug(
            "Site %s plugins synchronized (installed=%s)",
            site_id,
            [p.value for p in self._inventories[site_id].installed_plugins],
        )

    def get_store_country(self, site_id: int) -> str | None:
        return self._countries.get(site_id)

    def get_plugin_inventory(self, site_id: int) -> PluginInventorySnapshot:
        return self._inventories.get(site_id, PluginInventorySnapshot())

    # ── Accounts & gateways ──────────────────────────────────────────

    async def load_payment_gateway_accounts(self, site_id: int, plugins: list[Plugin]) -> list[AccountSnapshot]:
        """Fetch the account of each plugin.

        A plugin whose endpoint answers with an API error has no usable
        account; connectivity errors propagate.
        """
        accounts: list[AccountSnapshot] = []
        for plugin in plugins:
            try:
                payload = await self._fetch_account(plugin)
            except StoreAPIError as exc:
                logger.warning("No %s account for site %s: %s", plugin.value, site_id, exc)
                continue
            accounts.append(payload.to_snapshot(plugin))
        return accounts

    async def _fetch_account(self, plugin: Plugin) -> GatewayAccountPayload:
        if plugin is Plugin.PRIMARY:
            return await self._client.fetch_wcpay_account()
        return await self._client.fetch_stripe_account()

    async def load_cash_on_delivery_enabled(self, site_id: int) -> bool:
        try:
            gateway = await self._client.fetch_payment_gateway(CASH_ON_DELIVERY_GATEWAY_ID)
        except StoreAPIError as exc:
            if exc.status_code == 404:
                return False
            raise
        return gateway.enabled

    async def enable_cash_on_delivery(self, site_id: int) -> None:
        await self._client.update_payment_gateway(CASH_ON_DELIVERY_GATEWAY_ID, enabled=True)

    async def bind_active_account(self, site_id: int, account: AccountSnapshot) -> None:
        """Make this account the one used for payment collection on the site."""
        previous = self._active_accounts.get(site_id)
        self._active_accounts[site_id] = account
        if previous == account:
            return
        await emit(SystemEvent(
            event_type=EventType.ACCOUNT_BOUND,
            site_id=site_id,
            data={
                "gateway_id": PLUGIN_CAPABILITIES[account.plugin].gateway_id,
                "status": account.status.value,
                "is_live": account.is_live,
            },
            source_module="integrations.woocommerce.gateway",
        ))

    def active_account(self, site_id: int) -> AccountSnapshot | None:
        return self._active_accounts.get(site_id)

    # ── Plugin management ────────────────────────────────────────────

    async def install_plugin(self, site_id: int, slug: str) -> None:
        await self._client.install_plugin(slug)

    async def activate_plugin(self, site_id: int, name: str) -> None:
        await self._client.activate_plugin(name)

    # ── Device settings ──────────────────────────────────────────────

    async def get_preferred_gateway(self, site_id: int) -> str | None:
        return await self._settings.get_preferred_gateway(site_id)

    async def set_preferred_gateway(self, site_id: int, gateway_id: str) -> None:
        await self._settings.set_preferred_gateway(site_id, gateway_id)

    async def forget_preferred_gateway(self, site_id: int) -> None:
        await self._settings.forget_preferred_gateway(site_id)

    async def get_cod_step_skipped(self, site_id: int) -> bool:
        return await self._settings.get_cod_step_skipped(site_id)

    async def set_cod_step_skipped(self, site_id: int, skipped: bool) -> None:
        await self._settings.set_cod_step_skipped(site_id, skipped)
