"""Tests for the SystemEvent bus and the log subscriber."""

from __future__ import annotations

import logging

import pytest

from src.diagnostics import events
from src.diagnostics.audit import log_on_event
from src.schemas.events import EventType, SystemEvent


@pytest.fixture(autouse=True)
def _clean_bus():
    yield
    events._subscribers.clear()


def _event(event_type: EventType = EventType.ACCOUNT_BOUND) -> SystemEvent:
    return SystemEvent(event_type=event_type, site_id=7, data={"k": "v"}, source_module="tests")


class TestInlineDispatch:
    @pytest.mark.asyncio()
    async def test_global_subscriber_receives_everything(self):
        received = []

        async def handler(event):
            received.append(event.event_type)

        events.subscribe(handler)
        await events.emit(_event(EventType.ACCOUNT_BOUND))
        await events.emit(_event(EventType.PLUGIN_INSTALLED))

        assert received == [EventType.ACCOUNT_BOUND, EventType.PLUGIN_INSTALLED]

    @pytest.mark.asyncio()
    async def test_duplicate_subscription_delivers_once(self):
        received = []

        async def handler(event):
            received.append(event)

        events.subscribe(handler)
        events.subscribe(handler)
        await events.emit(_event())

        assert len(received) == 1

    @pytest.mark.asyncio()
    async def test_unsubscribe(self):
        received = []

        async def handler(event):
            received.append(event)

        events.subscribe(handler)
        events.unsubscribe(handler)
        await events.emit(_event())

        assert received == []

    @pytest.mark.asyncio()
    async def test_failing_handler_isolated(self):
        received = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            received.append(event)

        events.subscribe(broken)
        events.subscribe(healthy)
        await events.emit(_event())

        assert len(received) == 1


class TestQueuedDispatch:
    @pytest.mark.asyncio()
    async def test_worker_drains_queue_on_stop(self):
        received = []

        async def handler(event):
            received.append(event.event_type)

        events.subscribe(handler)
        await events.start_event_system()
        await events.emit(_event(EventType.SYSTEM_STARTUP))
        await events.stop_event_system()

        assert received == [EventType.SYSTEM_STARTUP]
        assert events._queue is None

    @pytest.mark.asyncio()
    async def test_inline_again_after_stop(self):
        received = []

        async def handler(event):
            received.append(event.event_type)

        events.subscribe(handler)
        await events.start_event_system()
        await events.stop_event_system()
        await events.emit(_event(EventType.SYSTEM_SHUTDOWN))

        assert received == [EventType.SYSTEM_SHUTDOWN]


class TestLogSubscriber:
    @pytest.mark.asyncio()
    async def test_failure_events_logged_as_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="src.diagnostics.audit"):
            await log_on_event(_event(EventType.STORE_ACTION_FAILED))
            await log_on_event(_event(EventType.ACCOUNT_BOUND))

        levels = [(r.levelno, r.getMessage().split()[0]) for r in caplog.records]
        assert levels == [
            (logging.WARNING, "event=store.action_failed"),
            (logging.INFO, "event=account.bound"),
        ]
