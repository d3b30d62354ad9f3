"""Onboarding state resolver — turns a snapshot into exactly one outcome.

Pure Python. No network, no Redis, no events.
The service applies the side effects of a completed outcome.
"""

from __future__ import annotations

import logging

from src.models.enums import Plugin
from src.onboarding.rules import check_plugin, check_store
from src.schemas.onboarding import (
    Completed,
    OnboardingOutcome,
    OnboardingSnapshot,
    PluginNotActivated,
    PluginNotInstalled,
    SelectPlugin,
)

logger = logging.getLogger(__name__)


def evaluate_plugin(snapshot: OnboardingSnapshot, plugin: Plugin) -> OnboardingOutcome:
    """Single-plugin path: the first failing plugin rule, or completed."""
    outcome = check_plugin(plugin, snapshot)
    if outcome is not None:
        return outcome
    return Completed(preferred_plugin=plugin, available_plugins=(plugin,))


def _resolve_both_installed(snapshot: OnboardingSnapshot) -> OnboardingOutcome:
    inventory = snapshot.inventory
    primary_active = inventory.is_active(Plugin.PRIMARY)
    secondary_active = inventory.is_active(Plugin.SECONDARY)

    if primary_active and secondary_active:
        country = snapshot.country or ""
        if not snapshot.country_support.is_supported_for_plugin(Plugin.SECONDARY, country):
            return evaluate_plugin(snapshot, Plugin.PRIMARY)

        preferred = snapshot.selection.preferred
        if preferred is None:
            return SelectPlugin(selection_was_cleared=False)

        outcome = evaluate_plugin(snapshot, preferred)
        if isinstance(outcome, Completed):
            return outcome.model_copy(update={"available_plugins": (Plugin.PRIMARY, Plugin.SECONDARY)})
        return outcome

    if primary_active:
        return evaluate_plugin(snapshot, Plugin.PRIMARY)
    if secondary_active:
        return evaluate_plugin(snapshot, Plugin.SECONDARY)
    return PluginNotActivated(plugin=Plugin.PRIMARY)


def resolve(snapshot: OnboardingSnapshot) -> OnboardingOutcome:
    """Compute the onboarding outcome for a fully gathered snapshot.

    Store rules first (country), then plugin selection among the installed
    plugins, then the plugin rules for the chosen plugin. Total: every input
    yields an outcome.
    """
    outcome = check_store(snapshot)
    if outcome is not None:
        return outcome

    installed = snapshot.inventory.installed_plugins
    if not installed:
        return PluginNotInstalled()
    if len(installed) == 1:
        return evaluate_plugin(snapshot, installed[0])
    return _resolve_both_installed(snapshot)
