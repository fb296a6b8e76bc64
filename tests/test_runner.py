# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from contextlib import asynccontextmanager

import anyio
from mcp.client.session import ClientSession
from mcp.shared.message import SessionMessage
import pytest

from docmcp.server import GeneratedServer, ToolBinding, runner
from docmcp.server.transports import StdioTransport, stdio


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(runner.ENV_PORT, raising=False)
    monkeypatch.delenv(runner.ENV_HOST, raising=False)


def test_defaults_to_stdio() -> None:
    options = runner.parse_options("demo", [])

    assert options.port is None
    assert options.transport == "stdio"
    assert options.host == "127.0.0.1"


def test_port_flag_selects_http() -> None:
    options = runner.parse_options("demo", ["--port", "8080", "--host", "0.0.0.0"])

    assert options.port == 8080
    assert options.host == "0.0.0.0"
    assert options.transport == "streamable-http"


def test_environment_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(runner.ENV_PORT, "9000")
    monkeypatch.setenv(runner.ENV_HOST, "localhost")

    options = runner.parse_options("demo", [])

    assert (options.port, options.host) == (9000, "localhost")


def test_flag_overrides_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(runner.ENV_PORT, "9000")

    assert runner.parse_options("demo", ["--port", "0"]).transport == "stdio"


def test_invalid_environment_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(runner.ENV_PORT, "eighty")

    with pytest.raises(SystemExit):
        runner.parse_options("demo", [])


def test_negative_port() -> None:
    with pytest.raises(SystemExit):
        runner.parse_options("demo", ["--port", "-1"])


def _echo_server() -> GeneratedServer:
    return GeneratedServer("echo", tools=[ToolBinding(name="echo", description="Echo", fn=lambda value: value)])


@pytest.mark.anyio
async def test_stdio_transport_serves_one_session(monkeypatch: pytest.MonkeyPatch) -> None:
    client_send, server_receive = anyio.create_memory_object_stream[SessionMessage | Exception](16)
    server_send, client_receive = anyio.create_memory_object_stream[SessionMessage](16)

    @asynccontextmanager
    async def memory_stdio():
        yield server_receive, server_send

    monkeypatch.setattr(stdio, "get_stdio_server", lambda: memory_stdio)

    async with anyio.create_task_group() as tg:
        tg.start_soon(StdioTransport(_echo_server).run)

        async with ClientSession(client_receive, client_send) as client:
            await client.initialize()
            result = await client.call_tool("echo", {"value": "over stdio"})

        tg.cancel_scope.cancel()

    assert result.content[0].text == "over stdio"


@pytest.mark.anyio
async def test_serve_picks_stdio_without_port(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    async def fake_stdio_run(self, **kwargs) -> None:
        calls.append("stdio")

    async def fake_http_run(self, **kwargs) -> None:
        calls.append(f"http:{kwargs['port']}")

    monkeypatch.setattr(runner.StdioTransport, "run", fake_stdio_run)
    monkeypatch.setattr(runner.StreamableHTTPTransport, "run", fake_http_run)

    await runner.serve(_echo_server, runner.RunOptions())
    await runner.serve(_echo_server, runner.RunOptions(port=3001))

    assert calls == ["stdio", "http:3001"]
