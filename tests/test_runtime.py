# -*- coding: utf-8 -*-
"""
Tests for the shutdown order of the shared services
"""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from mybot import task_manager
from mybot.events import QueueEventSource
from mybot.runtime import BotRuntime


@pytest.fixture
def runtime():
    return BotRuntime(
        settings=Mock(),
        cache=Mock(),
        orchestrator=Mock(),
        backend=AsyncMock(),
        transcription=Mock(),
        maintenance=AsyncMock(),
        events=QueueEventSource(),
    )


class TestRuntimeShutdown:
    @pytest.mark.asyncio
    async def test_in_flight_messages_finish_before_the_backend_closes(self, runtime):
        order = []
        runtime.backend.aclose.side_effect = lambda: order.append("backend closed")

        async def in_flight():
            await asyncio.sleep(0.01)
            order.append("message saved")

        task_manager.spawn(in_flight(), task_name="in-flight")

        await runtime.aclose()

        assert order == ["message saved", "backend closed"]
        assert runtime.events.closed
        runtime.maintenance.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dispatcher_drains_queued_events_first(self, runtime, make_message):
        handled = []

        async def handler(event):
            handled.append(event.id)

        runtime.events.push(make_message(id="7"))
        dispatcher = asyncio.create_task(task_manager.dispatch_events(runtime.events, handler))

        await runtime.aclose(dispatcher)

        assert handled == ["7"]
        runtime.backend.aclose.assert_awaited_once()
