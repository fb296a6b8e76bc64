# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Streamable HTTP transport with one server instance per session.

The :class:`SessionRegistry` maps ``mcp-session-id`` values to the SDK's
``StreamableHTTPServerTransport``.  Request routing:

* ``POST`` with a known session id continues that session.
* ``POST`` without a session id whose body carries an ``initialize`` request
  opens a new session with a fresh server instance.
* Any other ``POST`` is rejected with ``400`` / ``-32000``; an unparseable
  body is rejected with ``400`` / ``-32700``.
* ``GET`` attaches the SSE stream of a known session, otherwise ``400``.
* ``DELETE`` terminates a known session; an unknown id gets an empty ``200``.
* Any other method gets ``405``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
import json
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import anyio
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from mcp.server.transport_security import TransportSecuritySettings
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ._asgi import ASGITransportBase, SessionEndpoint
from .base import ServerFactory
from ...utils import get_logger


if TYPE_CHECKING:
    from anyio.abc import TaskGroup, TaskStatus
    from starlette.types import Message, Receive, Scope, Send


_logger = get_logger("docmcp.transports.http")

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "localhost", "::1"})

PARSE_ERROR = -32700
SESSION_ERROR = -32000
INTERNAL_ERROR = -32603


def default_security_settings(host: str) -> TransportSecuritySettings | None:
    """DNS-rebinding protection for loopback binds; nothing for public binds."""
    if host not in LOOPBACK_HOSTS:
        return None
    return TransportSecuritySettings(
        enable_dns_rebinding_protection=True,
        allowed_hosts=["127.0.0.1", "127.0.0.1:*", "localhost", "localhost:*", "[::1]", "[::1]:*"],
        allowed_origins=["http://127.0.0.1:*", "http://localhost:*", "http://[::1]:*"],
    )


def error_response(status_code: int, code: int, message: str, **kwargs: Any) -> JSONResponse:
    body = {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None}
    return JSONResponse(body, status_code=status_code, **kwargs)


class SessionRegistry:
    """Own every live HTTP session and route requests to it."""

    def __init__(
        self,
        server_factory: ServerFactory,
        *,
        security_settings: TransportSecuritySettings | None = None,
        json_response: bool = False,
    ) -> None:
        self._server_factory = server_factory
        self._security_settings = security_settings
        self._json_response = json_response
        self._sessions: dict[str, StreamableHTTPServerTransport] = {}
        self._task_group: TaskGroup | None = None
        self._creation_lock = anyio.Lock()

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Keep session tasks alive; terminate every session on exit."""
        if self._task_group is not None:
            raise RuntimeError("SessionRegistry.run() is already active")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield
            finally:
                await self.close_all()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def close_all(self) -> None:
        sessions, self._sessions = list(self._sessions.values()), {}
        for transport in sessions:
            await transport.terminate()
        if sessions:
            _logger.info("Closed %d HTTP session(s)", len(sessions))

    # ------------------------------------------------------------------
    # Request routing
    # ------------------------------------------------------------------

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        started = False

        async def tracking_send(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self._dispatch(scope, receive, tracking_send)
        except Exception:
            _logger.exception("Error handling MCP request")
            if not started:
                response = error_response(500, INTERNAL_ERROR, "Internal server error")
                await response(scope, receive, send)

    async def _dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        method = request.method
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        transport = self._sessions.get(session_id) if session_id else None

        if method == "POST":
            body = await request.body()
            replay = _replay_receive(body, receive)
            try:
                payload = json.loads(body)
            except ValueError:
                await error_response(400, PARSE_ERROR, "Parse error")(scope, replay, send)
                return

            if transport is not None:
                await transport.handle_request(scope, replay, send)
            elif session_id is None and _is_initialize(payload):
                await self._open_session(scope, replay, send)
            else:
                response = error_response(400, SESSION_ERROR, "Bad Request: No valid session ID provided")
                await response(scope, replay, send)
            return

        if method == "GET":
            if transport is None:
                await error_response(400, SESSION_ERROR, "Invalid or missing session ID")(scope, receive, send)
                return
            await transport.handle_request(scope, receive, send)
            return

        if method == "DELETE":
            if transport is None:
                await Response(status_code=200)(scope, receive, send)
                return
            await transport.handle_request(scope, receive, send)
            self._sessions.pop(session_id, None)  # type: ignore[arg-type]
            _logger.info("HTTP session %s closed by client", session_id)
            return

        response = error_response(405, SESSION_ERROR, "Method not allowed.", headers={"Allow": "GET, POST, DELETE"})
        await response(scope, receive, send)

    async def _open_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            raise RuntimeError("SessionRegistry is not running; use 'async with registry.run()'")

        async with self._creation_lock:
            session_id = uuid4().hex
            transport = StreamableHTTPServerTransport(
                mcp_session_id=session_id,
                is_json_response_enabled=self._json_response,
                security_settings=self._security_settings,
            )
            self._sessions[session_id] = transport
            try:
                await self._task_group.start(self._serve_session, session_id, transport)
            except BaseException:
                self._sessions.pop(session_id, None)
                raise

        _logger.info("HTTP session %s opened", session_id)
        await transport.handle_request(scope, receive, send)

    async def _serve_session(
        self,
        session_id: str,
        transport: StreamableHTTPServerTransport,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        server = self._server_factory()
        async with transport.connect() as (read_stream, write_stream):
            task_status.started()
            try:
                await server.run(read_stream, write_stream, server.create_initialization_options())
            except Exception:
                _logger.exception("Session %s crashed", session_id)
            finally:
                if self._sessions.get(session_id) is transport:
                    del self._sessions[session_id]


def _is_initialize(payload: Any) -> bool:
    messages = payload if isinstance(payload, list) else [payload]
    return any(isinstance(message, dict) and message.get("method") == "initialize" for message in messages)


def _replay_receive(body: bytes, receive: Receive) -> Receive:
    """Return a ``receive`` that yields the already-consumed *body* once."""
    pending = True

    async def _receive() -> Message:
        nonlocal pending
        if pending:
            pending = False
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive


class StreamableHTTPTransport(ASGITransportBase):
    """Serve sessions over Streamable HTTP at a single endpoint path."""

    TRANSPORT = ("streamable-http", "Streamable HTTP", "shttp", "sHTTP")

    def __init__(
        self,
        server_factory: ServerFactory,
        *,
        security_settings: TransportSecuritySettings | None = None,
        json_response: bool = False,
    ) -> None:
        super().__init__(server_factory)
        self._security_settings = security_settings
        self._json_response = json_response

    def _build_session_manager(self, host: str) -> SessionRegistry:
        security = self._security_settings
        if security is None:
            security = default_security_settings(host)
        return SessionRegistry(self.server_factory, security_settings=security, json_response=self._json_response)

    def _build_routes(self, *, path: str, endpoint: SessionEndpoint) -> Iterable[Route]:
        return [Route(path, endpoint)]

    async def run(self, **kwargs: Any) -> None:
        host = kwargs.get("host") or self.DEFAULT_HOST
        _logger.info(
            "Serving Streamable HTTP on http://%s:%s%s",
            host,
            kwargs.get("port") or self.DEFAULT_PORT,
            kwargs.get("path") or self.DEFAULT_PATH,
        )
        await super().run(**kwargs)


__all__ = [
    "SessionRegistry",
    "StreamableHTTPTransport",
    "default_security_settings",
    "error_response",
]
