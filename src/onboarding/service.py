"""Payments onboarding service — the in-process boundary of the engine.

Composes the sync orchestrator, the resolver, the cache, the skip flags and
the plugin selection for one site, and publishes every resulting outcome.
Callers always get an outcome back: gateway failures become outcome
variants and never propagate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.diagnostics.events import emit
from src.integrations.errors import StoreGatewayError
from src.models.enums import FailureTrigger, Plugin
from src.onboarding.cache import StateCache
from src.onboarding.plugins import PLUGIN_CAPABILITIES
from src.onboarding.publisher import OutcomePublisher
from src.onboarding.resolver import resolve
from src.onboarding.selection import PluginSelectionCoordinator
from src.onboarding.skip_flags import SkipFlagStore
from src.onboarding.sync import SyncOrchestrator, classify_failure
from src.schemas.events import EventType, SystemEvent
from src.schemas.onboarding import (
    Completed,
    CountrySupportConfiguration,
    GenericFailure,
    Loading,
    OnboardingOutcome,
    OnboardingSnapshot,
    SelectPlugin,
)

if TYPE_CHECKING:
    from src.integrations.woocommerce.gateway import RemoteStoreGateway

logger = logging.getLogger(__name__)


class PaymentsOnboardingService:
    """Computes and publishes the in-person payments onboarding state of a site."""

    def __init__(
        self,
        gateway: RemoteStoreGateway,
        site_id: int,
        *,
        cache: StateCache | None = None,
        publisher: OutcomePublisher | None = None,
        country_support: CountrySupportConfiguration | None = None,
    ) -> None:
        self._gateway = gateway
        self._site_id = site_id
        self.cache = cache or StateCache()
        self.publisher = publisher or OutcomePublisher()
        self.skip_flags = SkipFlagStore(gateway)
        self.selection = PluginSelectionCoordinator(gateway, site_id, self.publisher)
        self._sync = SyncOrchestrator(gateway, self.skip_flags, self.selection, country_support)
        self._last_snapshot: OnboardingSnapshot | None = None

    @property
    def site_id(self) -> int:
        return self._site_id

    @property
    def state(self) -> OnboardingOutcome:
        """The currently published outcome."""
        return self.publisher.current

    # ── Refresh ──────────────────────────────────────────────────────

    async def refresh(self) -> OnboardingOutcome:
        """Synchronize with the store, resolve and publish."""
        outcome = await self._synchronize_and_resolve()
        await self._publish(outcome)
        return outcome

    async def force_refresh(self) -> OnboardingOutcome:
        """Drop the cache, publish loading, then refresh."""
        self.cache.invalidate()
        await self._publish(Loading())
        return await self.refresh()

    async def refresh_if_necessary(self) -> OnboardingOutcome:
        """Reuse a cached completed outcome; anything else triggers a full refresh."""
        cached = self.cache.value
        if isinstance(cached, Completed):
            if cached != self.publisher.current:
                await self._publish(cached)
            return cached
        return await self.refresh()

    # ── Merchant choices ─────────────────────────────────────────────

    async def skip_pending_requirements(self) -> OnboardingOutcome:
        self.skip_flags.skip_pending_requirements()
        await self._emit(EventType.PENDING_REQUIREMENTS_SKIPPED)
        return await self._update_state()

    async def skip_cod_step(self) -> OnboardingOutcome:
        try:
            await self.skip_flags.set_cod_step_skipped(self._site_id, True)
        except StoreGatewayError as exc:
            return await self._fail_action(FailureTrigger.COD_SKIP, exc)
        await self._emit(EventType.COD_STEP_SKIPPED)
        return await self._update_state()

    async def select_plugin(self, plugin: Plugin) -> OnboardingOutcome:
        self.selection.select_plugin(plugin)
        await self._emit(EventType.PLUGIN_SELECTED, plugin=plugin.value)
        return await self._update_state()

    async def clear_plugin_selection(self) -> OnboardingOutcome:
        """Forget the preferred plugin; a fresh plugin choice is flagged as cleared."""
        try:
            await self.selection.clear_selection()
        except StoreGatewayError as exc:
            outcome = await classify_failure(self._site_id, [exc], "selection")
            await self._publish(outcome)
            return outcome

        outcome = await self._recompute()
        if isinstance(outcome, SelectPlugin) and not outcome.selection_was_cleared:
            outcome = SelectPlugin(selection_was_cleared=True)
        await self._publish(outcome)
        return outcome

    # ── Store actions ────────────────────────────────────────────────

    async def install_plugin(self, plugin: Plugin | None = None) -> OnboardingOutcome:
        plugin = plugin or self._concerned_plugin()
        slug = PLUGIN_CAPABILITIES[plugin].slug
        try:
            await self._gateway.install_plugin(self._site_id, slug)
        except StoreGatewayError as exc:
            return await self._fail_action(FailureTrigger.PLUGIN_INSTALL, exc, plugin)
        await self._emit(EventType.PLUGIN_INSTALLED, plugin=plugin.value, slug=slug)
        return await self.refresh()

    async def activate_plugin(self, plugin: Plugin | None = None) -> OnboardingOutcome:
        plugin = plugin or self._concerned_plugin()
        path = PLUGIN_CAPABILITIES[plugin].plugin_path
        try:
            await self._gateway.activate_plugin(self._site_id, path)
        except StoreGatewayError as exc:
            return await self._fail_action(FailureTrigger.PLUGIN_ACTIVATE, exc, plugin)
        await self._emit(EventType.PLUGIN_ACTIVATED, plugin=plugin.value, plugin_path=path)
        return await self.refresh()

    async def enable_cash_on_delivery(self) -> OnboardingOutcome:
        try:
            await self._gateway.enable_cash_on_delivery(self._site_id)
        except StoreGatewayError as exc:
            return await self._fail_action(FailureTrigger.COD_ENABLE, exc)
        await self._emit(EventType.COD_GATEWAY_ENABLED)
        return await self.refresh()

    # ── Internals ────────────────────────────────────────────────────

    async def _synchronize_and_resolve(self) -> OnboardingOutcome:
        result = await self._sync.synchronize(self._site_id)
        if not isinstance(result, OnboardingSnapshot):
            return result
        self._last_snapshot = result
        return await self._resolve(result)

    async def _recompute(self) -> OnboardingOutcome:
        """Resolve again from the last synchronized data with fresh flags and selection."""
        if self._last_snapshot is None:
            return await self._synchronize_and_resolve()
        try:
            skip_flags = await self.skip_flags.snapshot(self._site_id)
            selection = await self.selection.load_selection()
        except StoreGatewayError as exc:
            return await classify_failure(self._site_id, [exc], "settings")

        self._last_snapshot = self._last_snapshot.model_copy(
            update={"skip_flags": skip_flags, "selection": selection},
        )
        return await self._resolve(self._last_snapshot)

    async def _update_state(self) -> OnboardingOutcome:
        outcome = await self._recompute()
        await self._publish(outcome)
        return outcome

    async def _resolve(self, snapshot: OnboardingSnapshot) -> OnboardingOutcome:
        outcome = resolve(snapshot)
        if isinstance(outcome, Completed):
            await self._on_completed(snapshot, outcome)
        return outcome

    async def _on_completed(self, snapshot: OnboardingSnapshot, outcome: Completed) -> None:
        """Bind the account used for collection and re-arm the pending-requirements prompt."""
        account = snapshot.account_for(outcome.preferred_plugin)
        if account is not None:
            try:
                await self._gateway.bind_active_account(self._site_id, account)
            except StoreGatewayError as exc:
                logger.warning("Could not bind %s account for site %s: %s", account.plugin.value, self._site_id, exc)
        self.skip_flags.reset_pending_requirements_skip()

    async def _publish(self, outcome: OnboardingOutcome) -> None:
        previous = self.publisher.current
        if not isinstance(outcome, Loading):
            self.cache.update(outcome)
        await self.publisher.publish(outcome)
        if outcome == previous:
            return

        logger.info("Onboarding state for site %s: %s → %s", self._site_id, previous.kind.value, outcome.kind.value)
        plugin = outcome.concerned_plugin()
        await self._emit(
            EventType.ONBOARDING_STATE_CHANGED,
            previous=previous.kind.value,
            current=outcome.kind.value,
            plugin=plugin.value if plugin else None,
        )
        if isinstance(outcome, Completed) and not isinstance(previous, Completed):
            await self._emit(
                EventType.ONBOARDING_COMPLETED,
                plugin=outcome.preferred_plugin.value,
                available=[p.value for p in outcome.available_plugins],
            )

    async def _fail_action(
        self,
        trigger: FailureTrigger,
        error: StoreGatewayError,
        plugin: Plugin | None = None,
    ) -> OnboardingOutcome:
        logger.warning("Store action %s failed for site %s: %s", trigger.value, self._site_id, error)
        await self._emit(
            EventType.STORE_ACTION_FAILED,
            trigger=trigger.value,
            plugin=plugin.value if plugin else None,
            error=type(error).__name__,
            status_code=getattr(error, "status_code", None),
        )
        outcome = GenericFailure()
        await self._publish(outcome)
        return outcome

    def _concerned_plugin(self) -> Plugin:
        return self.publisher.current.concerned_plugin() or Plugin.PRIMARY

    async def _emit(self, event_type: EventType, **data: Any) -> None:
        await emit(SystemEvent(
            event_type=event_type,
            site_id=self._site_id,
            data=data,
            source_module="onboarding.service",
        ))
