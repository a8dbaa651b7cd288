# -*- coding: utf-8 -*-
"""
Centralized task management system for non-blocking message handling
"""
import asyncio
from typing import Awaitable, Callable, Set

from loguru import logger

from mybot.events import InboundMessage, QueueEventSource

# Global task registry for all bot operations
_active_tasks: Set[asyncio.Task] = set()


def get_active_tasks_count() -> int:
    """Get the number of currently active background tasks"""
    return len(_active_tasks)


def spawn(coro: Awaitable, task_name: str = "unknown") -> asyncio.Task:
    """Run a coroutine as a tracked background task"""
    task = asyncio.create_task(_execute_task(coro, task_name), name=task_name)

    # Keep a reference to prevent garbage collection
    _active_tasks.add(task)
    task.add_done_callback(_active_tasks.discard)

    logger.debug(f"Started non-blocking {task_name} task (Active tasks: {len(_active_tasks)})")
    return task


async def _execute_task(coro: Awaitable, task_name: str):
    try:
        await coro
        logger.debug(f"Completed {task_name} task")
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.exception(f"Error in {task_name} task: {e}")


async def dispatch_events(
    source: QueueEventSource, handler: Callable[[InboundMessage], Awaitable[None]]
) -> None:
    """Hand every inbound event to the handler as its own background task"""
    async for event in source:
        spawn(handler(event), task_name=f"message:{event.id}")


async def wait_for_all_tasks(timeout: float = 30.0) -> bool:
    """
    Wait for in-flight message tasks before shutdown.

    Returns:
        True if every task finished within the timeout
    """
    if not _active_tasks:
        return True

    logger.info(f"Waiting for {len(_active_tasks)} message tasks to finish...")
    _done, pending = await asyncio.wait(set(_active_tasks), timeout=timeout)
    if pending:
        logger.warning(f"Shutdown timeout reached, {len(pending)} message tasks still running")
        return False

    logger.info("All message tasks finished")
    return True


def cancel_all_tasks() -> int:
    """Cancel every unfinished task, returns how many were cancelled"""
    cancelled = 0
    for task in list(_active_tasks):
        if not task.done():
            task.cancel()
            cancelled += 1

    _active_tasks.clear()
    if cancelled:
        logger.warning(f"Cancelled {cancelled} message tasks")
    return cancelled
