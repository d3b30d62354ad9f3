"""Tests for the onboarding outcome publisher."""

from __future__ import annotations

import pytest

from src.onboarding.publisher import OutcomePublisher
from src.schemas.onboarding import GenericFailure, Loading, NoConnection, PluginNotInstalled


class TestOutcomePublisher:
    def test_starts_loading(self):
        assert OutcomePublisher().current == Loading()

    @pytest.mark.asyncio()
    async def test_publish_updates_current_and_notifies(self):
        publisher = OutcomePublisher()
        received = []

        async def handler(outcome):
            received.append(outcome)

        publisher.subscribe(handler)
        await publisher.publish(PluginNotInstalled())
        await publisher.publish(NoConnection())

        assert publisher.current == NoConnection()
        assert received == [PluginNotInstalled(), NoConnection()]

    @pytest.mark.asyncio()
    async def test_unsubscribe_stops_delivery(self):
        publisher = OutcomePublisher()
        received = []

        async def handler(outcome):
            received.append(outcome)

        publisher.subscribe(handler)
        publisher.unsubscribe(handler)
        publisher.unsubscribe(handler)
        await publisher.publish(GenericFailure())

        assert received == []
        assert publisher.subscriber_count == 0

    @pytest.mark.asyncio()
    async def test_failing_handler_is_isolated(self):
        publisher = OutcomePublisher()
        received = []

        async def broken(outcome):
            raise RuntimeError("boom")

        async def healthy(outcome):
            received.append(outcome)

        publisher.subscribe(broken)
        publisher.subscribe(healthy)
        await publisher.publish(GenericFailure())

        assert received == [GenericFailure()]

    @pytest.mark.asyncio()
    async def test_handler_may_unsubscribe_itself(self):
        publisher = OutcomePublisher()
        calls = []

        async def once(outcome):
            calls.append(outcome)
            publisher.unsubscribe(once)

        publisher.subscribe(once)
        await publisher.publish(GenericFailure())
        await publisher.publish(NoConnection())

        assert calls == [GenericFailure()]
