"""Publish/subscribe channel of onboarding outcomes.

Unlike the process-wide SystemEvent bus, this channel belongs to one
onboarding service, remembers the current value, and dispatches inline so a
caller awaiting ``publish`` knows every subscriber has seen the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from src.schemas.onboarding import Loading, OnboardingOutcome

logger = logging.getLogger(__name__)

OutcomeHandler = Callable[[OnboardingOutcome], Coroutine[Any, Any, None]]


class OutcomePublisher:
    """Current-value channel: last write wins, subscribers see every publication."""

    def __init__(self, initial: OnboardingOutcome | None = None) -> None:
        self._current: OnboardingOutcome = initial if initial is not None else Loading()
        self._handlers: list[OutcomeHandler] = []

    @property
    def current(self) -> OnboardingOutcome:
        return self._current

    def subscribe(self, handler: OutcomeHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: OutcomeHandler) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, outcome: OnboardingOutcome) -> None:
        """Make ``outcome`` current and hand it to every subscriber."""
        self._current = outcome
        # Handlers may unsubscribe themselves while we dispatch.
        handlers = list(self._handlers)
        if not handlers:
            return
        await asyncio.gather(*[self._safe_call(handler, outcome) for handler in handlers])

    @staticmethod
    async def _safe_call(handler: OutcomeHandler, outcome: OnboardingOutcome) -> None:
        try:
            await handler(outcome)
        except Exception:
            name = getattr(handler, "__name__", repr(handler))
            logger.exception("Outcome handler %s failed for %s", name, outcome.kind.value)
