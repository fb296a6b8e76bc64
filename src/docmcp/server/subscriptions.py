# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource subscription engine.

One :class:`SubscriptionManager` belongs to one server instance, and a server
instance serves exactly one session, so subscriptions never leak between
clients.  Each subscribed URI gets a driving task in the server's task group
that turns update signals into ``notifications/resources/updated``.

Per-URI lifecycle::

    untracked --subscribe--> ACTIVE --unsubscribe / failed notify--> STOPPING
        ^                                                               |
        +-------------------- driving task ends ------------------------+

Subscribing to a URI that is already tracked does nothing, and so does
unsubscribing from one that is not.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any

import anyio

from ..ir import SubscriptionMode
from ..utils import call_blocking_or_await, get_logger, iterate_updates


if TYPE_CHECKING:  # pragma: no cover - typing only
    from anyio.abc import TaskGroup

Notifier = Callable[[str], Awaitable[Any]]


class SubscriptionState(str, Enum):
    ACTIVE = "active"
    STOPPING = "stopping"


@dataclass(slots=True, eq=False)
class Subscription:
    """Bookkeeping for one subscribed URI."""

    uri: str
    mode: SubscriptionMode
    state: SubscriptionState = SubscriptionState.ACTIVE

    @property
    def stopping(self) -> bool:
        return self.state is SubscriptionState.STOPPING

    def stop(self) -> None:
        self.state = SubscriptionState.STOPPING


class SubscriptionManager:
    """Track subscribed URIs and drive their update loops."""

    def __init__(self, *, logger: logging.Logger | None = None, idle_delay: float = 1.0) -> None:
        self._entries: dict[str, Subscription] = {}
        self._task_group: TaskGroup | None = None
        self._lock = anyio.Lock()
        self._logger = logger or get_logger("docmcp.subscriptions")
        self._idle_delay = idle_delay

    def attach(self, task_group: TaskGroup) -> None:
        """Bind the manager to the task group that will own driving tasks."""
        self._task_group = task_group

    def detach(self) -> None:
        self._task_group = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def subscribe(self, uri: str, *, mode: SubscriptionMode, source: Callable[[], Any], notify: Notifier) -> bool:
        """Start driving updates for *uri*.

        Returns ``False`` when the URI was already tracked.
        """
        if self._task_group is None:
            raise RuntimeError("SubscriptionManager is not attached to a running task group")

        async with self._lock:
            if self.state(uri) is not None:
                return False
            entry = Subscription(uri=uri, mode=SubscriptionMode(mode))
            self._entries[uri] = entry

        self._task_group.start_soon(self._run, entry, source, notify, name=f"subscription:{uri}")
        self._logger.debug("Subscribed to %s (%s)", uri, entry.mode.value)
        return True

    async def unsubscribe(self, uri: str) -> bool:
        """Mark *uri* as stopping.  Returns ``False`` when it was not tracked."""
        async with self._lock:
            entry = self._entries.get(uri)
            if entry is None:
                return False
            entry.stop()
        self._logger.debug("Unsubscribed from %s", uri)
        return True

    def state(self, uri: str) -> SubscriptionState | None:
        entry = self._entries.get(uri)
        return entry.state if entry is not None else None

    def stop_all(self) -> None:
        for entry in list(self._entries.values()):
            entry.stop()

    # ------------------------------------------------------------------
    # Driving tasks
    # ------------------------------------------------------------------

    async def _run(self, entry: Subscription, source: Callable[[], Any], notify: Notifier) -> None:
        try:
            if entry.mode is SubscriptionMode.GENERATOR:
                await self._drive_generator(entry, source, notify)
            else:
                await self._drive_poll(entry, source, notify)
        except Exception:
            self._logger.exception("Subscription to %s failed; dropping it", entry.uri)
        finally:
            entry.state = SubscriptionState.STOPPING
            if self._entries.get(entry.uri) is entry:
                del self._entries[entry.uri]

    async def _drive_generator(self, entry: Subscription, source: Callable[[], Any], notify: Notifier) -> None:
        while not entry.stopping:
            produced = False
            async with aclosing(iterate_updates(source())) as updates:
                async for _ in updates:
                    if entry.stopping or not await self._notify(entry, notify):
                        return
                    produced = True
            if not produced:
                await anyio.sleep(self._idle_delay)

    async def _drive_poll(self, entry: Subscription, source: Callable[[], Any], notify: Notifier) -> None:
        while not entry.stopping:
            await call_blocking_or_await(source)
            if entry.stopping or not await self._notify(entry, notify):
                return

    async def _notify(self, entry: Subscription, notify: Notifier) -> bool:
        try:
            await notify(entry.uri)
        except Exception as exc:
            self._logger.warning("Failed to deliver update for %s: %s", entry.uri, exc)
            entry.state = SubscriptionState.STOPPING
            return False
        return True


__all__ = ["SubscriptionState", "Subscription", "SubscriptionManager"]
