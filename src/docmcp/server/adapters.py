# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Normalization helpers for values returned by user functions.

Each helper turns the loose shapes a plain Python function naturally returns
(strings, bytes, dicts, lists) into the protocol result types.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Mapping
import inspect
import json
from typing import Any

from mcp import types
from pydantic import TypeAdapter

from ..utils.schema import SchemaEnvelope


DEFAULT_MIME_TYPE = "text/plain"

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
_JSONABLE = TypeAdapter(Any)


def to_jsonable(value: Any) -> Any:
    """Convert *value* to JSON-compatible data; unknown objects become strings."""
    return _JSONABLE.dump_python(value, mode="json", fallback=str)


def call_arguments(fn: Callable[..., Any], arguments: Mapping[str, Any] | None) -> dict[str, Any]:
    """Select the keyword arguments *fn* accepts from *arguments*.

    Parameters without a default that the caller left out receive ``None``.
    """
    arguments = dict(arguments or {})
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return arguments

    kwargs: dict[str, Any] = {}
    accepts_extra = False
    for name, param in signature.parameters.items():
        if param.kind in _VARIADIC:
            accepts_extra = accepts_extra or param.kind is inspect.Parameter.VAR_KEYWORD
            continue
        if name in arguments:
            kwargs[name] = arguments.pop(name)
        elif param.default is inspect.Parameter.empty:
            kwargs[name] = None
    if accepts_extra:
        kwargs.update(arguments)
    return kwargs


def split_arguments(
    fn: Callable[..., Any], arguments: Mapping[str, Any] | None
) -> tuple[tuple[Any, ...], dict[str, Any]]:
    """Like :func:`call_arguments`, but positional-only values move into ``args``.

    An omitted positional-only parameter that precedes a supplied one is
    filled with its default.
    """
    kwargs = call_arguments(fn, arguments)
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return (), kwargs

    args: list[Any] = []
    pending: list[Any] = []
    for name, param in signature.parameters.items():
        if param.kind is not inspect.Parameter.POSITIONAL_ONLY:
            break
        if name in kwargs:
            args.extend(pending)
            pending.clear()
            args.append(kwargs.pop(name))
        else:
            pending.append(param.default)
    return tuple(args), kwargs


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def render_text(value: Any, *, pretty: bool = False) -> str:
    """Text rendering of a result: strings as they are, anything else as JSON."""
    if isinstance(value, str) and not pretty:
        return value
    data = to_jsonable(value)
    return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False)


def normalize_tool_result(
    value: Any, envelope: SchemaEnvelope | None = None
) -> tuple[list[types.ContentBlock], dict[str, Any] | None]:
    """Return ``(content, structured)`` for a plain tool result.

    Tools with an output envelope render their text as indented JSON and
    carry the (boxed) value as structured content.
    """
    text = render_text(value, pretty=envelope is not None)
    content: list[types.ContentBlock] = [types.TextContent(type="text", text=text)]
    if envelope is None:
        return content, None

    structured = to_jsonable(value)
    return content, dict(envelope.wrap(structured))


def coerce_call_tool_result(value: Any) -> types.CallToolResult:
    """Validate a value the function returned as a complete tool-call result."""
    if isinstance(value, types.CallToolResult):
        return value
    return types.CallToolResult.model_validate(to_jsonable(value))


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def normalize_prompt_result(value: Any, *, description: str | None = None) -> types.GetPromptResult:
    """Turn a prompt function's return value into ``GetPromptResult``.

    A string becomes a single user message.  A list is taken as the message
    list; anything else must already have the result's shape.
    """
    if isinstance(value, types.GetPromptResult):
        return value
    if isinstance(value, str):
        message = types.PromptMessage(role="user", content=types.TextContent(type="text", text=value))
        return types.GetPromptResult(description=description, messages=[message])
    if isinstance(value, list):
        value = {"messages": value}
    return types.GetPromptResult.model_validate(to_jsonable(value))


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def normalize_resource_result(uri: str, default_mime: str | None, payload: Any) -> types.ReadResourceResult:
    """Coerce a resource read result into ``ReadResourceResult``."""
    mime = default_mime or DEFAULT_MIME_TYPE

    if isinstance(payload, types.ReadResourceResult):
        return payload
    if isinstance(payload, (types.TextResourceContents, types.BlobResourceContents)):
        return types.ReadResourceResult(contents=[payload])
    if isinstance(payload, str):
        return types.ReadResourceResult(contents=[types.TextResourceContents(uri=uri, mimeType=mime, text=payload)])
    if isinstance(payload, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(payload)).decode("ascii")
        blob_mime = default_mime or "application/octet-stream"
        return types.ReadResourceResult(contents=[types.BlobResourceContents(uri=uri, mimeType=blob_mime, blob=encoded)])

    if isinstance(payload, Mapping):
        if "contents" in payload:
            return types.ReadResourceResult.model_validate(to_jsonable(payload))
        item_mime = payload.get("mimeType") or mime
        if "blob" in payload:
            blob = payload["blob"]
            if isinstance(blob, (bytes, bytearray)):
                blob = base64.b64encode(bytes(blob)).decode("ascii")
            return types.ReadResourceResult(
                contents=[types.BlobResourceContents(uri=uri, mimeType=item_mime, blob=blob)]
            )
        if "text" in payload:
            return types.ReadResourceResult(
                contents=[types.TextResourceContents(uri=uri, mimeType=item_mime, text=str(payload["text"]))]
            )

    return types.ReadResourceResult(
        contents=[types.TextResourceContents(uri=uri, mimeType=mime, text=render_text(payload))]
    )


def normalize_list_entry(entry: Any, default_mime: str | None) -> types.Resource:
    """Turn one item produced by a ``list`` operation into a ``Resource``."""
    mime = default_mime or DEFAULT_MIME_TYPE
    if isinstance(entry, types.Resource):
        return entry
    if isinstance(entry, str):
        return types.Resource(uri=entry, name=_last_segment(entry), mimeType=mime)

    data = dict(to_jsonable(entry))
    uri = str(data["uri"])
    data.setdefault("name", _last_segment(uri))
    data["mimeType"] = data.get("mimeType") or mime
    return types.Resource.model_validate(data)


def _last_segment(uri: str) -> str:
    return uri.rsplit("/", 1)[-1] or uri


__all__ = [
    "DEFAULT_MIME_TYPE",
    "call_arguments",
    "split_arguments",
    "render_text",
    "to_jsonable",
    "normalize_tool_result",
    "coerce_call_tool_result",
    "normalize_prompt_result",
    "normalize_resource_result",
    "normalize_list_entry",
]
