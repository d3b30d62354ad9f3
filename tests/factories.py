"""Test doubles and factories shared across the test modules."""

from __future__ import annotations

from typing import Any

from src.models.enums import AccountStatus, Plugin
from src.onboarding.plugins import default_country_support
from src.schemas.onboarding import (
    AccountSnapshot,
    OnboardingSnapshot,
    PluginInstallation,
    PluginInventorySnapshot,
    PluginSelection,
    SkipFlags,
)

SITE_ID = 42


class FakeStoreGateway:
    """In-memory RemoteStoreGateway. Failures are injected per operation via ``errors``."""

    def __init__(self) -> None:
        self.country: str | None = "US"
        self.installations: dict[Plugin, PluginInstallation] = {}
        self.accounts: dict[Plugin, AccountSnapshot] = {}
        self.cod_enabled = True
        self.preferred_gateway: str | None = None
        self.cod_step_skipped = False
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []
        self.bound_accounts: list[AccountSnapshot] = []
        self.preferred_gateway_writes: list[str] = []

    def _check(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.errors:
            raise self.errors[operation]

    # ── Store state helpers ──────────────────────────────────────────

    def install(self, plugin: Plugin, version: str = "99.0.0", active: bool = True) -> None:
        self.installations[plugin] = PluginInstallation(plugin=plugin, version=version, active=active)

    def set_account(self, plugin: Plugin, status: AccountStatus = AccountStatus.COMPLETE, **kwargs: Any) -> None:
        self.accounts[plugin] = AccountSnapshot(plugin=plugin, status=status, **kwargs)

    def calls_to(self, operation: str) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] == operation]

    # ── RemoteStoreGateway ───────────────────────────────────────────

    async def synchronize_site_settings(self, site_id: int) -> None:
        self._check("synchronize_site_settings", site_id)

    async def synchronize_system_plugins(self, site_id: int) -> None:
        self._check("synchronize_system_plugins", site_id)

    def get_store_country(self, site_id: int) -> str | None:
        return self.country

    def get_plugin_inventory(self, site_id: int) -> PluginInventorySnapshot:
        return PluginInventorySnapshot(installations=dict(self.installations))

    async def load_payment_gateway_accounts(self, site_id: int, plugins: list[Plugin]) -> list[AccountSnapshot]:
        self._check("load_payment_gateway_accounts", site_id, tuple(plugins))
        return [self.accounts[p] for p in plugins if p in self.accounts]

    async def load_cash_on_delivery_enabled(self, site_id: int) -> bool:
        self._check("load_cash_on_delivery_enabled", site_id)
        return self.cod_enabled

    async def enable_cash_on_delivery(self, site_id: int) -> None:
        self._check("enable_cash_on_delivery", site_id)
        self.cod_enabled = True

    async def bind_active_account(self, site_id: int, account: AccountSnapshot) -> None:
        self._check("bind_active_account", site_id, account)
        self.bound_accounts.append(account)

    async def install_plugin(self, site_id: int, slug: str) -> None:
        self._check("install_plugin", site_id, slug)

    async def activate_plugin(self, site_id: int, name: str) -> None:
        self._check("activate_plugin", site_id, name)

    async def get_preferred_gateway(self, site_id: int) -> str | None:
        self._check("get_preferred_gateway", site_id)
        return self.preferred_gateway

    async def set_preferred_gateway(self, site_id: int, gateway_id: str) -> None:
        self._check("set_preferred_gateway", site_id, gateway_id)
        self.preferred_gateway = gateway_id
        self.preferred_gateway_writes.append(gateway_id)

    async def forget_preferred_gateway(self, site_id: int) -> None:
        self._check("forget_preferred_gateway", site_id)
        self.preferred_gateway = None

    async def get_cod_step_skipped(self, site_id: int) -> bool:
        self._check("get_cod_step_skipped", site_id)
        return self.cod_step_skipped

    async def set_cod_step_skipped(self, site_id: int, skipped: bool) -> None:
        self._check("set_cod_step_skipped", site_id, skipped)
        self.cod_step_skipped = skipped


def make_snapshot(
    country: str | None = "US",
    installed: dict[Plugin, tuple[str, bool]] | None = None,
    accounts: list[AccountSnapshot] | None = None,
    cod_gateway_enabled: bool = True,
    pending_requirements_skipped: bool = False,
    cod_step_skipped: bool = False,
    local_preference: Plugin | None = None,
    persisted_preference: Plugin | None = None,
) -> OnboardingSnapshot:
    """Build a resolver input. ``installed`` maps plugin → (version, active)."""
    installations = {
        plugin: PluginInstallation(plugin=plugin, version=version, active=active)
        for plugin, (version, active) in (installed or {}).items()
    }
    return OnboardingSnapshot(
        site_id=SITE_ID,
        country=country,
        country_support=default_country_support(),
        inventory=PluginInventorySnapshot(installations=installations),
        accounts={a.plugin: a for a in accounts or []},
        cod_gateway_enabled=cod_gateway_enabled,
        skip_flags=SkipFlags(
            pending_requirements_skipped=pending_requirements_skipped,
            cod_step_skipped=cod_step_skipped,
        ),
        selection=PluginSelection(local_preference=local_preference, persisted_preference=persisted_preference),
    )


def make_account(
    plugin: Plugin = Plugin.PRIMARY,
    status: AccountStatus = AccountStatus.COMPLETE,
    **kwargs: Any,
) -> AccountSnapshot:
    return AccountSnapshot(plugin=plugin, status=status, **kwargs)
