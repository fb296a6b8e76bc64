# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Runtime binding records consumed by :class:`~docmcp.server.core.GeneratedServer`.

A binding pairs a protocol-facing definition (name, description, schemas) with
the Python callables that implement it.  Generated server modules declare
their bindings as literals; :mod:`docmcp.compiler.lowering` builds the same
records in-process.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..ir import ParamKind, SubscriptionMode, uri_placeholders


@dataclass(slots=True)
class ToolBinding:
    """A callable exposed as an MCP tool.

    Attributes:
        name: Protocol name of the tool.
        description: Human-readable description.
        fn: The function to invoke with keyword arguments.
        input_schema: JSON Schema for the arguments object.
        output_schema: JSON Schema for structured content, when the tool
            produces any.
        wrap_field: Property that boxes the result inside structured content.
        passthrough: The function returns a complete tool-call result.
    """

    name: str
    description: str
    fn: Callable[..., Any]
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    output_schema: dict[str, Any] | None = None
    wrap_field: str | None = None
    passthrough: bool = False


@dataclass(slots=True)
class PromptArgumentSpec:
    name: str
    kind: ParamKind = "string"
    description: str | None = None
    required: bool = True


@dataclass(slots=True)
class PromptBinding:
    name: str
    description: str
    fn: Callable[..., Any]
    arguments: tuple[PromptArgumentSpec, ...] = ()


@dataclass(frozen=True, slots=True)
class ResourceOps:
    """Operation slots of a resource.

    ``read`` is mandatory.  ``list`` enumerates concrete URIs of a templated
    resource; ``subscribe`` is either a generator function producing one item
    per update or a callable that completes when the next update happens.
    Both ``read`` and ``subscribe`` receive template values as keyword
    arguments.
    """

    read: Callable[..., Any]
    list: Callable[[], Any] | None = None
    subscribe: Callable[..., Any] | None = None


@dataclass(slots=True)
class ResourceBinding:
    name: str
    description: str
    uri: str
    ops: ResourceOps
    mime_type: str | None = None
    parameters: tuple[str, ...] = ()
    subscription: SubscriptionMode | None = None

    @property
    def templated(self) -> bool:
        return bool(self.parameters) or bool(uri_placeholders(self.uri))

    @property
    def subscribable(self) -> bool:
        return self.subscription is not None and self.ops.subscribe is not None


__all__ = ["ToolBinding", "PromptArgumentSpec", "PromptBinding", "ResourceOps", "ResourceBinding"]
