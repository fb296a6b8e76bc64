# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import json

from mcp.server.lowlevel.server import NotificationOptions
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session
import pytest

from docmcp.server import GeneratedServer, ToolBinding
from docmcp.server.adapters import call_arguments, render_text, split_arguments, to_jsonable


@pytest.mark.anyio
async def test_list_tools_schemas(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        listed = await client.list_tools()

    tools = {tool.name: tool for tool in listed.tools}
    assert list(tools) == ["add", "validate_email", "split_words", "yell"]

    add = tools["add"]
    assert add.description == "Add two numbers"
    assert add.inputSchema == {
        "type": "object",
        "properties": {
            "a": {"type": "number", "description": "First addend"},
            "b": {"type": "number", "description": "Second addend"},
        },
        "required": ["a", "b"],
    }
    assert add.outputSchema is None

    assert tools["validate_email"].outputSchema == {
        "type": "object",
        "properties": {
            "valid": {"type": "boolean"},
            "errors": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["valid", "errors"],
    }
    assert tools["split_words"].outputSchema == {
        "type": "object",
        "properties": {"results": {"type": "array", "items": {"type": "string"}}},
        "required": ["results"],
    }
    assert tools["yell"].outputSchema is None


@pytest.mark.anyio
async def test_primitive_result_is_text_only(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        result = await client.call_tool("add", {"a": 2, "b": 3})

    assert not result.isError
    assert result.content[0].text == "5"
    assert result.structuredContent is None


@pytest.mark.anyio
async def test_object_result_is_structured(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        result = await client.call_tool("validate_email", {"email": "nobody"})

    assert not result.isError
    assert result.structuredContent == {"valid": False, "errors": ["missing @"]}
    assert json.loads(result.content[0].text) == {"valid": False, "errors": ["missing @"]}
    assert "\n" in result.content[0].text


@pytest.mark.anyio
async def test_array_result_is_wrapped(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        result = await client.call_tool("split_words", {"text": "one two three", "limit": 2})

    assert result.structuredContent == {"results": ["one", "two"]}
    assert json.loads(result.content[0].text) == ["one", "two"]


@pytest.mark.anyio
async def test_passthrough_result(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        result = await client.call_tool("yell", {"text": "hello"})

    assert not result.isError
    assert result.content[0].text == "HELLO"
    assert result.structuredContent is None


@pytest.mark.anyio
async def test_invalid_arguments_are_reported(calculator_server: GeneratedServer) -> None:
    async with create_connected_server_and_client_session(calculator_server) as client:
        result = await client.call_tool("add", {"a": "two", "b": 3})

    assert result.isError


@pytest.mark.anyio
async def test_invoke_tool_directly(calculator_server: GeneratedServer) -> None:
    result = await calculator_server.invoke_tool("split_words", text="a b c")

    assert result.structuredContent == {"results": ["a", "b", "c"]}


@pytest.mark.anyio
async def test_unknown_tool(calculator_server: GeneratedServer) -> None:
    with pytest.raises(McpError, match="Unknown tool"):
        await calculator_server.invoke_tool("missing")


@pytest.mark.anyio
async def test_tool_errors_become_error_results() -> None:
    def explode() -> str:
        raise ValueError("kaboom")

    server = GeneratedServer("errors", tools=[ToolBinding(name="explode", description="Fails", fn=explode)])

    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("explode", {})

    assert result.isError
    assert "kaboom" in result.content[0].text


@pytest.mark.anyio
async def test_sync_and_async_functions() -> None:
    async def fetch(url: str) -> dict[str, str]:
        return {"url": url}

    server = GeneratedServer(
        "mixed",
        tools=[
            ToolBinding(name="fetch", description="Fetch", fn=fetch),
            ToolBinding(name="echo", description="Echo", fn=lambda value: value),
        ],
    )

    fetched = await server.invoke_tool("fetch", url="https://example.com")
    echoed = await server.invoke_tool("echo", value="hi")

    assert json.loads(fetched.content[0].text) == {"url": "https://example.com"}
    assert echoed.content[0].text == "hi"


@pytest.mark.anyio
async def test_positional_only_functions_are_called_in_order() -> None:
    def scale(value: float, factor: float = 2, /, *, offset: float = 0) -> float:
        return value * factor + offset

    server = GeneratedServer("scale", tools=[ToolBinding(name="scale", description="Scale", fn=scale)])

    doubled = await server.invoke_tool("scale", value=3)
    tripled = await server.invoke_tool("scale", value=3, factor=3, offset=1)

    assert doubled.content[0].text == "6"
    assert tripled.content[0].text == "10"


def test_split_arguments_orders_positional_only_values() -> None:
    def fn(a, b=5, c=6, /, d=None, **extra):
        return a, b, c, d, extra

    assert split_arguments(fn, {"c": 3, "a": 1, "d": 4, "z": 0}) == ((1, 5, 3), {"d": 4, "z": 0})
    assert split_arguments(fn, {}) == ((None,), {})


def test_tools_only_server_advertises_only_tools() -> None:
    tools_only = GeneratedServer("tools", tools=[ToolBinding(name="echo", description="Echo", fn=lambda value: value)])
    caps = tools_only.get_capabilities(NotificationOptions(), {})

    assert caps.tools is not None
    assert caps.prompts is None
    assert caps.resources is None


def test_call_arguments_filtering() -> None:
    def fn(a, b, c=3):
        return a, b, c

    def open_fn(a, **extra):
        return a, extra

    assert call_arguments(fn, {"a": 1, "z": 9}) == {"a": 1, "b": None}
    assert call_arguments(open_fn, {"a": 1, "z": 9}) == {"a": 1, "z": 9}



class _Opaque:
    def __str__(self) -> str:
        return "opaque"


@dataclass
class _Point:
    x: int
    y: int


def test_results_convert_to_json_data() -> None:
    assert to_jsonable({"point": _Point(1, 2), "day": date(2025, 1, 2)}) == {
        "point": {"x": 1, "y": 2},
        "day": "2025-01-02",
    }
    assert to_jsonable([_Opaque()]) == ["opaque"]
    assert render_text({"thing": _Opaque()}) == '{"thing": "opaque"}'
