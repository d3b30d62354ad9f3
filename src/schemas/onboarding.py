"""Pydantic schemas for the onboarding engine — inputs and outcomes.

Pure data classes — no network, no Redis.
The sync orchestrator builds an OnboardingSnapshot; the resolver turns it
into exactly one outcome variant.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from src.models.enums import AccountStatus, OutcomeKind, Plugin


# ---------------------------------------------------------------------------
# Resolver inputs
# ---------------------------------------------------------------------------


class PluginInstallation(BaseModel):
    """A payment plugin found on the store."""

    model_config = {"frozen": True}

    plugin: Plugin
    version: str | None = None
    active: bool = False


class PluginInventorySnapshot(BaseModel):
    """Installed payment plugins, keyed by plugin. Absent key = not installed."""

    model_config = {"frozen": True}

    installations: dict[Plugin, PluginInstallation] = Field(default_factory=dict)

    def installation(self, plugin: Plugin) -> PluginInstallation | None:
        return self.installations.get(plugin)

    def is_active(self, plugin: Plugin) -> bool:
        installation = self.installations.get(plugin)
        return installation is not None and installation.active

    @property
    def installed_plugins(self) -> list[Plugin]:
        return [p for p in Plugin if p in self.installations]


class AccountSnapshot(BaseModel):
    """Payment-gateway account bound to a plugin, with its verification metadata."""

    model_config = {"frozen": True}

    plugin: Plugin
    status: AccountStatus
    is_live: bool = False
    is_in_test_mode: bool = False
    has_pending_requirements: bool = False
    has_overdue_requirements: bool = False
    current_deadline: datetime | None = None
    is_card_present_eligible: bool = True


class CountrySupportConfiguration(BaseModel):
    """Where in-person payments work at all, and where each plugin supports them."""

    model_config = {"frozen": True}

    countries: frozenset[str]
    plugin_countries: dict[Plugin, frozenset[str]]

    def is_supported(self, country: str) -> bool:
        return country.upper() in self.countries

    def is_supported_for_plugin(self, plugin: Plugin, country: str) -> bool:
        return country.upper() in self.plugin_countries.get(plugin, frozenset())


class SkipFlags(BaseModel):
    """User-dismissible overrides for non-blocking onboarding steps."""

    model_config = {"frozen": True}

    pending_requirements_skipped: bool = False  # session-scoped
    cod_step_skipped: bool = False  # persisted per site


class PluginSelection(BaseModel):
    """Preferred plugin when both are viable. The local (session) choice wins."""

    model_config = {"frozen": True}

    local_preference: Plugin | None = None
    persisted_preference: Plugin | None = None

    @property
    def preferred(self) -> Plugin | None:
        return self.local_preference or self.persisted_preference


class OnboardingSnapshot(BaseModel):
    """Everything the resolver needs, gathered for one site."""

    model_config = {"frozen": True}

    site_id: int
    country: str | None = None
    country_support: CountrySupportConfiguration
    inventory: PluginInventorySnapshot = Field(default_factory=PluginInventorySnapshot)
    accounts: dict[Plugin, AccountSnapshot] = Field(default_factory=dict)
    cod_gateway_enabled: bool = False
    skip_flags: SkipFlags = Field(default_factory=SkipFlags)
    selection: PluginSelection = Field(default_factory=PluginSelection)

    def account_for(self, plugin: Plugin) -> AccountSnapshot | None:
        return self.accounts.get(plugin)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class _Outcome(BaseModel):
    """Common behaviour of every outcome variant."""

    model_config = {"frozen": True}

    @property
    def is_completed(self) -> bool:
        return False

    def concerned_plugin(self) -> Plugin | None:
        """The plugin this outcome is about, if any."""
        return getattr(self, "plugin", None)


class Loading(_Outcome):
    kind: Literal[OutcomeKind.LOADING] = OutcomeKind.LOADING


class SelectPlugin(_Outcome):
    kind: Literal[OutcomeKind.SELECT_PLUGIN] = OutcomeKind.SELECT_PLUGIN
    selection_was_cleared: bool = False


class CountryNotSupported(_Outcome):
    kind: Literal[OutcomeKind.COUNTRY_NOT_SUPPORTED] = OutcomeKind.COUNTRY_NOT_SUPPORTED
    country: str


class CountryNotSupportedForPlugin(_Outcome):
    kind: Literal[OutcomeKind.COUNTRY_NOT_SUPPORTED_FOR_PLUGIN] = OutcomeKind.COUNTRY_NOT_SUPPORTED_FOR_PLUGIN
    plugin: Plugin
    country: str


class PluginNotInstalled(_Outcome):
    kind: Literal[OutcomeKind.PLUGIN_NOT_INSTALLED] = OutcomeKind.PLUGIN_NOT_INSTALLED


class PluginUnsupportedVersion(_Outcome):
    kind: Literal[OutcomeKind.PLUGIN_UNSUPPORTED_VERSION] = OutcomeKind.PLUGIN_UNSUPPORTED_VERSION
    plugin: Plugin


class PluginNotActivated(_Outcome):
    kind: Literal[OutcomeKind.PLUGIN_NOT_ACTIVATED] = OutcomeKind.PLUGIN_NOT_ACTIVATED
    plugin: Plugin


class PluginSetupNotCompleted(_Outcome):
    kind: Literal[OutcomeKind.PLUGIN_SETUP_NOT_COMPLETED] = OutcomeKind.PLUGIN_SETUP_NOT_COMPLETED
    plugin: Plugin


class PluginTestModeWithLiveAccount(_Outcome):
    kind: Literal[OutcomeKind.PLUGIN_TEST_MODE_WITH_LIVE_ACCOUNT] = OutcomeKind.PLUGIN_TEST_MODE_WITH_LIVE_ACCOUNT
    plugin: Plugin


class AccountUnderReview(_Outcome):
    kind: Literal[OutcomeKind.ACCOUNT_UNDER_REVIEW] = OutcomeKind.ACCOUNT_UNDER_REVIEW
    plugin: Plugin


class AccountPendingRequirement(_Outcome):
    kind: Literal[OutcomeKind.ACCOUNT_PENDING_REQUIREMENT] = OutcomeKind.ACCOUNT_PENDING_REQUIREMENT
    plugin: Plugin
    deadline: datetime | None = None


class AccountOverdueRequirement(_Outcome):
    kind: Literal[OutcomeKind.ACCOUNT_OVERDUE_REQUIREMENT] = OutcomeKind.ACCOUNT_OVERDUE_REQUIREMENT
    plugin: Plugin


class AccountRejected(_Outcome):
    kind: Literal[OutcomeKind.ACCOUNT_REJECTED] = OutcomeKind.ACCOUNT_REJECTED
    plugin: Plugin


class CodGatewayNotSetUp(_Outcome):
    kind: Literal[OutcomeKind.COD_GATEWAY_NOT_SET_UP] = OutcomeKind.COD_GATEWAY_NOT_SET_UP
    plugin: Plugin


class Completed(_Outcome):
    kind: Literal[OutcomeKind.COMPLETED] = OutcomeKind.COMPLETED
    preferred_plugin: Plugin
    available_plugins: tuple[Plugin, ...]

    @property
    def is_completed(self) -> bool:
        return True

    def concerned_plugin(self) -> Plugin | None:
        return self.preferred_plugin


class NoConnection(_Outcome):
    kind: Literal[OutcomeKind.NO_CONNECTION_ERROR] = OutcomeKind.NO_CONNECTION_ERROR


class GenericFailure(_Outcome):
    kind: Literal[OutcomeKind.GENERIC_ERROR] = OutcomeKind.GENERIC_ERROR


OnboardingOutcome = Annotated[
    Union[
        Loading,
        SelectPlugin,
        CountryNotSupported,
        CountryNotSupportedForPlugin,
        PluginNotInstalled,
        PluginUnsupportedVersion,
        PluginNotActivated,
        PluginSetupNotCompleted,
        PluginTestModeWithLiveAccount,
        AccountUnderReview,
        AccountPendingRequirement,
        AccountOverdueRequirement,
        AccountRejected,
        CodGatewayNotSetUp,
        Completed,
        NoConnection,
        GenericFailure,
    ],
    Field(discriminator="kind"),
]

# Serializes/validates any outcome variant (used by the HTTP router).
OUTCOME_ADAPTER: TypeAdapter[OnboardingOutcome] = TypeAdapter(OnboardingOutcome)
