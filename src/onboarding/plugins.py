"""Payment plugin definitions and their capability table.

Two plugins compete to provide in-person payments. Everything that differs
between them (gateway id, install slug, minimum version, countries, help
links) lives in PLUGIN_CAPABILITIES instead of per-plugin conditionals.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from src.models.enums import Plugin
from src.schemas.onboarding import CountrySupportConfiguration


class PluginCapabilities(BaseModel):
    """Static facts about a payment plugin."""

    model_config = {"frozen": True}

    gateway_id: str
    display_name: str
    slug: str  # wordpress.org slug, used for installation
    plugin_path: str  # "<dir>/<file>" without .php, used for activation
    minimum_version: str
    supported_countries: frozenset[str]
    # Primary plugin availability is decided by the global country gate alone.
    has_country_restrictions: bool = False
    setup_url: str
    cash_on_delivery_learn_more_url: str


PLUGIN_CAPABILITIES: dict[Plugin, PluginCapabilities] = {
    Plugin.PRIMARY: PluginCapabilities(
        gateway_id="woocommerce-payments",
        display_name="WooPayments",
        slug="woocommerce-payments",
        plugin_path="woocommerce-payments/woocommerce-payments",
        minimum_version="3.2.1",
        supported_countries=frozenset({"US", "CA", "GB"}),
        setup_url="https://woocommerce.com/document/woopayments/startup-guide/",
        cash_on_delivery_learn_more_url=(
            "https://woocommerce.com/document/woopayments/in-person-payments/"
            "getting-started-with-in-person-payments/#add-cod-payment-method"
        ),
    ),
    Plugin.SECONDARY: PluginCapabilities(
        gateway_id="woocommerce-stripe",
        display_name="WooCommerce Stripe Gateway",
        slug="woocommerce-gateway-stripe",
        plugin_path="woocommerce-gateway-stripe/woocommerce-gateway-stripe",
        minimum_version="6.2.0",
        supported_countries=frozenset({"US"}),
        has_country_restrictions=True,
        setup_url="https://woocommerce.com/document/stripe/setup-and-configuration/",
        cash_on_delivery_learn_more_url=(
            "https://woocommerce.com/document/stripe/accept-in-person-payments-with-stripe/"
            "#add-cod-payment-method"
        ),
    ),
}

_GATEWAY_IDS: dict[str, Plugin] = {caps.gateway_id: plugin for plugin, caps in PLUGIN_CAPABILITIES.items()}


def plugin_for_gateway_id(gateway_id: str | None) -> Plugin | None:
    """Map a persisted gateway identifier back to its Plugin, or None if unknown."""
    if not gateway_id:
        return None
    return _GATEWAY_IDS.get(gateway_id)


def _version_components(version: str) -> list[int]:
    """Numeric components of a version string: "6.2.0-beta.1" → [6, 2, 0]."""
    release = version.strip().split("-", 1)[0]
    components: list[int] = []
    for piece in release.split("."):
        match = re.match(r"\d+", piece)
        components.append(int(match.group()) if match else 0)
    return components


def is_version_supported(version: str | None, minimum_required: str) -> bool:
    """Return True if ``version`` is at least ``minimum_required``.

    Missing components count as zero, so "6.2" satisfies "6.2.0".
    An unknown version is never supported.
    """
    if not version:
        return False
    current = _version_components(version)
    required = _version_components(minimum_required)
    width = max(len(current), len(required))
    current += [0] * (width - len(current))
    required += [0] * (width - len(required))
    return current >= required


def default_country_support() -> CountrySupportConfiguration:
    """Country configuration derived from the capability table.

    In-person payments are supported wherever at least one plugin supports them.
    """
    plugin_countries = {plugin: caps.supported_countries for plugin, caps in PLUGIN_CAPABILITIES.items()}
    countries: frozenset[str] = frozenset().union(*plugin_countries.values())
    return CountrySupportConfiguration(countries=countries, plugin_countries=plugin_countries)
