"""Single-slot cache of the last resolved onboarding outcome.

One instance is owned by the service and injected wherever it is needed;
there is no module-level cache.
"""

from __future__ import annotations

import logging

from src.schemas.onboarding import OnboardingOutcome

logger = logging.getLogger(__name__)


class StateCache:
    """Holds the last fully resolved outcome for the lifetime of the process."""

    def __init__(self) -> None:
        self._value: OnboardingOutcome | None = None

    @property
    def value(self) -> OnboardingOutcome | None:
        return self._value

    def update(self, outcome: OnboardingOutcome) -> None:
        """Overwrite the slot unconditionally."""
        self._value = outcome
        logger.debug("Cached onboarding outcome: %s", outcome.kind.value)

    def invalidate(self) -> None:
        self._value = None
