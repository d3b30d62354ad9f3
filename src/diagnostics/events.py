"""SystemEvent bus for onboarding diagnostics.

Events are dispatched inline to every subscriber until ``start_event_system``
runs; after that a single background worker drains a queue so emitters never
wait on subscribers. The app lifespan owns the start/stop calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from src.schemas.events import SystemEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[SystemEvent], Coroutine[Any, Any, None]]

# ── Internal state ───────────────────────────────────────────────────

_subscribers: list[EventHandler] = []
_queue: asyncio.Queue[SystemEvent] | None = None
_worker_task: asyncio.Task[None] | None = None


# ── Subscriptions ────────────────────────────────────────────────────


def subscribe(handler: EventHandler) -> None:
    if handler not in _subscribers:
        _subscribers.append(handler)
        logger.info("Registered event subscriber: %s", handler.__name__)


def unsubscribe(handler: EventHandler) -> None:
    if handler in _subscribers:
        _subscribers.remove(handler)


# ── Emission ─────────────────────────────────────────────────────────


async def emit(event: SystemEvent) -> None:
    if _queue is None:
        await _dispatch(event)
        return
    await _queue.put(event)
    logger.debug("Queued event %s (site=%s)", event.event_type.value, event.site_id)


async def _dispatch(event: SystemEvent) -> None:
    handlers = list(_subscribers)
    if handlers:
        await asyncio.gather(*(_safe_call(handler, event) for handler in handlers))


async def _safe_call(handler: EventHandler, event: SystemEvent) -> None:
    try:
        await handler(event)
    except Exception:
        logger.exception("Subscriber %s failed on %s", handler.__name__, event.event_type.value)


async def _drain(queue: asyncio.Queue[SystemEvent]) -> None:
    while True:
        event = await queue.get()
        try:
            await _dispatch(event)
        finally:
            queue.task_done()


# ── Lifecycle ────────────────────────────────────────────────────────


async def start_event_system() -> None:
    """Switch to queued dispatch. Idempotent while running."""
    global _queue, _worker_task
    if _worker_task is not None and not _worker_task.done():
        return
    _queue = asyncio.Queue()
    _worker_task = asyncio.create_task(_drain(_queue))
    logger.info("Event system started with %d subscribers", len(_subscribers))


async def stop_event_system() -> None:
    """Flush pending events, stop the worker and fall back to inline dispatch."""
    global _queue, _worker_task
    if _queue is not None:
        await _queue.join()
    if _worker_task is not None:
        _worker_task.cancel()
        try:
            await _worker_task
        except asyncio.CancelledError:
            pass
    _queue = None
    _worker_task = None
    logger.info("Event system stopped")
