"""Ordered onboarding rules.

Each rule is a (name, applies, produce) triple. The resolver walks a rule
list top to bottom and returns the outcome of the first rule that applies,
so list order is precedence. Pure and deterministic, no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, NamedTuple

from pydantic import BaseModel

from src.models.enums import COLLECTABLE_STATUSES, AccountStatus, Plugin
from src.onboarding.plugins import PLUGIN_CAPABILITIES, is_version_supported
from src.schemas.onboarding import (
    AccountOverdueRequirement,
    AccountPendingRequirement,
    AccountRejected,
    AccountSnapshot,
    AccountUnderReview,
    CodGatewayNotSetUp,
    CountryNotSupported,
    CountryNotSupportedForPlugin,
    GenericFailure,
    OnboardingOutcome,
    OnboardingSnapshot,
    PluginInstallation,
    PluginNotActivated,
    PluginSetupNotCompleted,
    PluginTestModeWithLiveAccount,
    PluginUnsupportedVersion,
)


class OnboardingRule(NamedTuple):
    """A precedence-ordered check: if ``applies`` holds, ``produce`` is the outcome."""

    name: str
    applies: Callable[[Any], bool]
    produce: Callable[[Any], OnboardingOutcome]


class PluginContext(BaseModel):
    """A single plugin being evaluated against the gathered snapshot."""

    model_config = {"frozen": True}

    plugin: Plugin
    snapshot: OnboardingSnapshot

    @property
    def country(self) -> str:
        # Store rules guarantee a known country before any plugin is evaluated.
        return self.snapshot.country or ""

    @property
    def installation(self) -> PluginInstallation | None:
        return self.snapshot.inventory.installation(self.plugin)

    @property
    def account(self) -> AccountSnapshot | None:
        return self.snapshot.account_for(self.plugin)


def _first_match(rules: list[OnboardingRule], context: Any) -> OnboardingOutcome | None:
    """Return the outcome of the first applicable rule, or None if none applies."""
    for rule in rules:
        if rule.applies(context):
            return rule.produce(context)
    return None


# ── Store-level rules ────────────────────────────────────────────────────


def _country_unknown(snapshot: OnboardingSnapshot) -> bool:
    return not snapshot.country


def _country_unsupported(snapshot: OnboardingSnapshot) -> bool:
    return not snapshot.country_support.is_supported(snapshot.country or "")


STORE_RULES: list[OnboardingRule] = [
    OnboardingRule("country_unknown", _country_unknown, lambda s: GenericFailure()),
    OnboardingRule(
        "country_not_supported",
        _country_unsupported,
        lambda s: CountryNotSupported(country=s.country or ""),
    ),
]


def check_store(snapshot: OnboardingSnapshot) -> OnboardingOutcome | None:
    """Run the store-level rules; None means the store may use in-person payments."""
    return _first_match(STORE_RULES, snapshot)


# ── Plugin rules ─────────────────────────────────────────────────────────


def _plugin_country_unsupported(ctx: PluginContext) -> bool:
    caps = PLUGIN_CAPABILITIES[ctx.plugin]
    return caps.has_country_restrictions and not ctx.snapshot.country_support.is_supported_for_plugin(
        ctx.plugin, ctx.country
    )


def _version_unsupported(ctx: PluginContext) -> bool:
    version = ctx.installation.version if ctx.installation else None
    return not is_version_supported(version, PLUGIN_CAPABILITIES[ctx.plugin].minimum_version)


def _not_active(ctx: PluginContext) -> bool:
    return not ctx.snapshot.inventory.is_active(ctx.plugin)


def _setup_not_completed(ctx: PluginContext) -> bool:
    return ctx.account is None or ctx.account.status == AccountStatus.NO_ACCOUNT


# Every rule below runs only once _setup_not_completed has failed, so
# ctx.account is present.


def _test_mode_with_live_account(ctx: PluginContext) -> bool:
    account = ctx.account
    return account is not None and account.is_live and account.is_in_test_mode


def _under_review(ctx: PluginContext) -> bool:
    account = ctx.account
    return (
        account is not None
        and account.status == AccountStatus.RESTRICTED
        and not account.has_pending_requirements
        and not account.has_overdue_requirements
    )


def _overdue_requirements(ctx: PluginContext) -> bool:
    account = ctx.account
    return account is not None and account.status == AccountStatus.RESTRICTED and account.has_overdue_requirements


def has_pending_requirements(account: AccountSnapshot) -> bool:
    """Restricted with pending requirements, or about to be restricted."""
    return (
        account.status == AccountStatus.RESTRICTED and account.has_pending_requirements
    ) or account.status == AccountStatus.RESTRICTED_SOON


def _pending_requirements_not_skipped(ctx: PluginContext) -> bool:
    account = ctx.account
    return (
        account is not None
        and has_pending_requirements(account)
        and not ctx.snapshot.skip_flags.pending_requirements_skipped
    )


def _rejected(ctx: PluginContext) -> bool:
    return ctx.account is not None and ctx.account.status.is_rejected


def _cod_not_set_up(ctx: PluginContext) -> bool:
    return not ctx.snapshot.cod_gateway_enabled and not ctx.snapshot.skip_flags.cod_step_skipped


def _undefined_state(ctx: PluginContext) -> bool:
    account = ctx.account
    if account is None:
        return True
    if account.status in COLLECTABLE_STATUSES:
        return False
    # A restricted account whose pending requirements were skipped may still collect.
    skipped = ctx.snapshot.skip_flags.pending_requirements_skipped
    return not (skipped and has_pending_requirements(account))


PLUGIN_RULES: list[OnboardingRule] = [
    OnboardingRule(
        "country_not_supported_for_plugin",
        _plugin_country_unsupported,
        lambda c: CountryNotSupportedForPlugin(plugin=c.plugin, country=c.country),
    ),
    OnboardingRule("plugin_unsupported_version", _version_unsupported, lambda c: PluginUnsupportedVersion(plugin=c.plugin)),
    OnboardingRule("plugin_not_activated", _not_active, lambda c: PluginNotActivated(plugin=c.plugin)),
    OnboardingRule("plugin_setup_not_completed", _setup_not_completed, lambda c: PluginSetupNotCompleted(plugin=c.plugin)),
    OnboardingRule(
        "plugin_test_mode_with_live_account",
        _test_mode_with_live_account,
        lambda c: PluginTestModeWithLiveAccount(plugin=c.plugin),
    ),
    OnboardingRule("account_under_review", _under_review, lambda c: AccountUnderReview(plugin=c.plugin)),
    # Overdue is never skippable, so it must precede the skippable pending rule.
    OnboardingRule("account_overdue_requirement", _overdue_requirements, lambda c: AccountOverdueRequirement(plugin=c.plugin)),
    OnboardingRule(
        "account_pending_requirement",
        _pending_requirements_not_skipped,
        lambda c: AccountPendingRequirement(
            plugin=c.plugin,
            deadline=c.account.current_deadline if c.account else None,
        ),
    ),
    OnboardingRule("account_rejected", _rejected, lambda c: AccountRejected(plugin=c.plugin)),
    OnboardingRule("cod_gateway_not_set_up", _cod_not_set_up, lambda c: CodGatewayNotSetUp(plugin=c.plugin)),
    OnboardingRule("undefined_account_state", _undefined_state, lambda c: GenericFailure()),
]


def check_plugin(plugin: Plugin, snapshot: OnboardingSnapshot) -> OnboardingOutcome | None:
    """Run the plugin rules; None means the plugin is ready to collect payments."""
    return _first_match(PLUGIN_RULES, PluginContext(plugin=plugin, snapshot=snapshot))
