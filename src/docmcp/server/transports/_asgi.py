# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared ASGI transport primitives.

Concrete transports supply a session manager and their routes; this module
mounts them in a Starlette app, ties the manager to the app lifespan, and
runs the whole thing under uvicorn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable  # noqa: TC003
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from starlette.applications import Starlette
from uvicorn import Config, Server

from .base import BaseTransport


if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send


class SessionManagerProtocol(Protocol):
    """Surface a session manager must offer to be mounted."""

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None: ...

    def run(self) -> AbstractAsyncContextManager[None]: ...


@dataclass(slots=True)
class SessionEndpoint:
    """ASGI endpoint that hands requests to a session manager."""

    session_manager: SessionManagerProtocol
    transport_label: str = "ASGI"
    allowed_scopes: tuple[str, ...] = ("http",)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") not in self.allowed_scopes:
            allowed = ", ".join(self.allowed_scopes)
            raise TypeError(f"{self.transport_label} only handles ASGI scopes: {allowed} (got {scope.get('type')!r}).")
        await self.session_manager.handle_request(scope, receive, send)

    def lifespan(self) -> Callable[[Starlette], AbstractAsyncContextManager[None]]:
        """Return a Starlette lifespan hook that keeps the manager running."""

        @asynccontextmanager
        async def _lifespan(_app: Starlette) -> AsyncIterator[None]:
            async with self.session_manager.run():
                yield

        return _lifespan


class ASGITransportBase(BaseTransport, ABC):
    """Template for transports that serve sessions over ASGI."""

    ALLOWED_SCOPES: tuple[str, ...] = ("http",)
    DEFAULT_HOST: str = "127.0.0.1"
    DEFAULT_PORT: int = 3000
    DEFAULT_PATH: str = "/mcp"
    DEFAULT_LOG_LEVEL: str = "info"

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        path: str | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        host = host or self.DEFAULT_HOST
        port = port or self.DEFAULT_PORT
        app = self.build_app(path=path or self.DEFAULT_PATH, host=host)

        config = Config(app=app, host=host, port=port, log_level=log_level or self.DEFAULT_LOG_LEVEL, **uvicorn_options)
        await Server(config).serve()

    def build_app(self, *, path: str | None = None, host: str | None = None) -> Starlette:
        """Return the Starlette app serving this transport at *path*."""
        manager = self._build_session_manager(host or self.DEFAULT_HOST)
        endpoint = SessionEndpoint(
            session_manager=manager, transport_label=self.transport_display_name, allowed_scopes=self.ALLOWED_SCOPES
        )
        routes = list(self._build_routes(path=path or self.DEFAULT_PATH, endpoint=endpoint))
        return Starlette(routes=routes, lifespan=endpoint.lifespan())

    @abstractmethod
    def _build_session_manager(self, host: str) -> SessionManagerProtocol: ...

    @abstractmethod
    def _build_routes(self, *, path: str, endpoint: SessionEndpoint) -> Iterable[object]: ...


__all__ = ["ASGITransportBase", "SessionEndpoint", "SessionManagerProtocol"]
