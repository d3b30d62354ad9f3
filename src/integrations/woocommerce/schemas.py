"""Pydantic schemas for the WooCommerce REST payloads the onboarding engine reads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.models.enums import AccountStatus, Plugin
from src.schemas.onboarding import AccountSnapshot, PluginInstallation, PluginInventorySnapshot

# General settings option holding "<country>[:<state>]"
DEFAULT_COUNTRY_OPTION = "woocommerce_default_country"

CASH_ON_DELIVERY_GATEWAY_ID = "cod"


class SettingOption(BaseModel):
    """One entry of GET /wc/v3/settings/general."""

    id: str
    value: Any = None


def parse_store_country(options: list[SettingOption]) -> str | None:
    """Extract the ISO country code from the general settings, or None if undeterminable."""
    for option in options:
        if option.id != DEFAULT_COUNTRY_OPTION:
            continue
        if not isinstance(option.value, str):
            return None
        country = option.value.split(":", 1)[0].strip().upper()
        return country or None
    return None


class SystemPluginRecord(BaseModel):
    """A plugin entry from GET /wc/v3/system_status."""

    plugin: str  # e.g. "woocommerce-payments/woocommerce-payments.php"
    name: str = ""
    version: str = ""

    @property
    def path(self) -> str:
        return self.plugin.removesuffix(".php")


class SystemStatusPayload(BaseModel):
    """The subset of GET /wc/v3/system_status used for the plugin inventory."""

    active_plugins: list[SystemPluginRecord] = Field(default_factory=list)
    inactive_plugins: list[SystemPluginRecord] = Field(default_factory=list)


def build_inventory(payload: SystemStatusPayload, plugin_paths: dict[Plugin, str]) -> PluginInventorySnapshot:
    """Map system-status plugin records onto the payment plugins we care about."""
    installations: dict[Plugin, PluginInstallation] = {}
    records = [(record, True) for record in payload.active_plugins]
    records += [(record, False) for record in payload.inactive_plugins]

    for plugin, path in plugin_paths.items():
        for record, active in records:
            if record.path == path:
                installations[plugin] = PluginInstallation(
                    plugin=plugin,
                    version=record.version or None,
                    active=active,
                )
                break

    return PluginInventorySnapshot(installations=installations)


class GatewayAccountPayload(BaseModel):
    """Account payload shared by the WooPayments and Stripe account endpoints."""

    status: AccountStatus = AccountStatus.NO_ACCOUNT
    is_live: bool = False
    test_mode: bool = False
    has_pending_requirements: bool = False
    has_overdue_requirements: bool = False
    current_deadline: datetime | None = None
    card_present_eligible: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> AccountStatus:
        """Unknown wire values map to UNKNOWN instead of failing validation."""
        if v is None:
            return AccountStatus.NO_ACCOUNT
        return AccountStatus(v)

    def to_snapshot(self, plugin: Plugin) -> AccountSnapshot:
        return AccountSnapshot(
            plugin=plugin,
            status=self.status,
            is_live=self.is_live,
            is_in_test_mode=self.test_mode,
            has_pending_requirements=self.has_pending_requirements,
            has_overdue_requirements=self.has_overdue_requirements,
            current_deadline=self.current_deadline,
            is_card_present_eligible=self.card_present_eligible,
        )


class PaymentGatewayPayload(BaseModel):
    """GET /wc/v3/payment_gateways/{id}."""

    id: str
    enabled: bool = False
    title: str = ""
