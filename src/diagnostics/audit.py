"""Log subscriber — writes every SystemEvent to the application log.

Registered as a global subscriber (receives ALL events). This is the
service's diagnostic trail: onboarding transitions, sync failures tagged
with their cause, and store actions tagged with their failure trigger.
"""

from __future__ import annotations

import logging

from src.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

_WARNING_EVENTS = frozenset({
    EventType.ONBOARDING_SYNC_FAILED,
    EventType.STORE_ACTION_FAILED,
})


async def log_on_event(event: SystemEvent) -> None:
    """Write a SystemEvent to the log, at WARNING for failures and INFO otherwise."""
    level = logging.WARNING if event.event_type in _WARNING_EVENTS else logging.INFO
    logger.log(
        level,
        "event=%s site=%s source=%s data=%s",
        event.event_type.value,
        event.site_id,
        event.source_module,
        event.data,
    )
