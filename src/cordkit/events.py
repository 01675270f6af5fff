"""
Event bus with priority ordered listeners.

Platform events are published under ``@discord.<event>``; application events
such as ``saveData`` use plain names.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

PLATFORM_EVENT_PREFIX = "@discord."

# Strong references to running background tasks
_background_tasks: set[asyncio.Task] = set()


def platform_event(name: str) -> str:
    """Get the bus event name of a platform client event."""
    return PLATFORM_EVENT_PREFIX + name


def spawn(awaitable: Awaitable[Any], name: str | None = None) -> asyncio.Task:
    """
    Run an awaitable as a background task on the running loop.

    The task is referenced until it finishes; an exception it ends with is
    logged.
    """
    task = asyncio.get_running_loop().create_task(_wait(awaitable), name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_task_done)
    return task


async def _wait(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _background_task_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        exc = task.exception()
        logger.error(
            "Background task %s failed", task.get_name(), exc_info=(type(exc), exc, exc.__traceback__)
        )


@dataclass
class EventCall:
    """
    One publication of an event.

    Cancellation only has effect on mutable calls; it is up to the publisher
    to honor it.
    """

    event: str
    args: tuple[Any, ...] = ()
    mutable: bool = False
    cancelled: bool = False

    def cancel(self, value: bool = True) -> "EventCall":
        self.cancelled = value
        return self


@dataclass(eq=False)
class EventListener:
    """
    A function subscribed to an event.

    Params:
        event: The event name
        func: Called with the event arguments, may be a coroutine function
        priority: Lower priorities are called first
        delay: Seconds to delay the call by; delayed calls can not cancel
    """

    event: str
    func: Callable[..., Any]
    priority: int = 0
    delay: float | None = None

    async def handle(self, call: EventCall) -> None:
        if self.delay is not None:
            asyncio.get_running_loop().call_later(
                self.delay, self._call_later, call.args
            )
            return

        ret = self.func(*call.args)
        if inspect.isawaitable(ret):
            ret = await ret
        # A boolean return sets the cancel state, None leaves it unchanged
        if isinstance(ret, bool):
            call.cancel(ret)

    def _call_later(self, args: tuple[Any, ...]) -> None:
        ret = self.func(*args)
        if inspect.isawaitable(ret):
            spawn(ret, f"cordkit: delayed {self.event}")


@dataclass
class MultiListener:
    """All listeners of one event, kept ordered by priority."""

    event: str
    listeners: list[EventListener] = field(default_factory=list)

    def add(self, listener: EventListener) -> None:
        # Insert after every listener of lower or equal priority
        index = len(self.listeners)
        for i, existing in enumerate(self.listeners):
            if existing.priority > listener.priority:
                index = i
                break
        self.listeners.insert(index, listener)

    def remove(self, listener: EventListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def handle(self, call: EventCall) -> None:
        for listener in list(self.listeners):
            await listener.handle(call)


class EventBus:
    """Publishes named events to their subscribed listeners."""

    def __init__(self):
        self.listeners: dict[str, MultiListener] = {}
        self._on_new_event: list[Callable[[str], Any]] = []

    def for_all_events(self, func: Callable[[str], Any]) -> None:
        """Apply a function to the name of every current and future event."""
        self._on_new_event.append(func)
        for event in list(self.listeners):
            func(event)

    def register(self, listener: EventListener) -> EventListener:
        base = self.listeners.get(listener.event)
        if base is None:
            base = self.listeners[listener.event] = MultiListener(listener.event)
            for func in self._on_new_event:
                func(listener.event)
        base.add(listener)
        logger.debug("Registered listener for %s with priority %d", listener.event, listener.priority)
        return listener

    def subscribe(
        self,
        event: str,
        func: Callable[..., Any],
        priority: int = 0,
        delay: float | None = None,
    ) -> EventListener:
        """
        Subscribe a function to an event.

        Returns:
            The listener, usable with unsubscribe
        """
        return self.register(EventListener(event, func, priority, delay))

    def unsubscribe(self, listener: EventListener) -> None:
        base = self.listeners.get(listener.event)
        if base is not None:
            base.remove(listener)

    def has_listeners(self, event: str) -> bool:
        base = self.listeners.get(event)
        return base is not None and bool(base.listeners)

    async def publish(self, call: EventCall) -> EventCall:
        base = self.listeners.get(call.event)
        if base is not None:
            await base.handle(call)
        return call

    async def call(self, event: str, *args: Any, mutable: bool = False) -> EventCall:
        """Publish an event with the given arguments."""
        return await self.publish(EventCall(event, args, mutable))
