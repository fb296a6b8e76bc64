# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers for generated server tests."""

from __future__ import annotations

from collections.abc import Callable
from itertools import count
from types import SimpleNamespace

import anyio
from mcp import types
from mcp.server.lowlevel.server import request_ctx
from mcp.shared.context import RequestContext


_REQUEST_COUNTER = count(1)


class DummySession:
    """In-memory session used to capture server notifications."""

    def __init__(self, name: str = "session") -> None:
        self.name = name
        self.notifications: list[types.ServerNotification] = []

    async def send_notification(
        self, notification: types.ServerNotification, related_request_id: types.RequestId | None = None
    ) -> None:
        await anyio.lowlevel.checkpoint()
        self.notifications.append(notification)

    @property
    def updated_uris(self) -> list[str]:
        return [
            str(notification.root.params.uri)
            for notification in self.notifications
            if isinstance(notification.root, types.ResourceUpdatedNotification)
        ]


class FailingSession(DummySession):
    """Session that raises when notified, used to test cleanup."""

    def __init__(self, name: str = "failing") -> None:
        super().__init__(name)
        self.failures = 0

    async def send_notification(
        self, notification: types.ServerNotification, related_request_id: types.RequestId | None = None
    ) -> None:
        self.failures += 1
        raise RuntimeError("notification failure")


async def run_with_context(session: DummySession, func, *args, meta=None):
    """Execute *func* with ``request_ctx`` bound to *session*."""
    ctx = RequestContext(
        request_id=next(_REQUEST_COUNTER),
        meta=meta,
        session=session,  # type: ignore[arg-type]
        lifespan_context={},
        request=SimpleNamespace(scope=None),
    )
    token = request_ctx.set(ctx)
    try:
        return await func(*args)
    finally:
        request_ctx.reset(token)


async def wait_until(predicate: Callable[[], bool], *, timeout: float = 3.0, interval: float = 0.01) -> None:
    """Poll *predicate* until it holds, failing after *timeout* seconds."""
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(interval)
