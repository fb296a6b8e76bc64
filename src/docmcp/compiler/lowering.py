# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Lower IR definitions to runtime bindings.

The same schema decisions feed two consumers: :func:`compile_server` builds a
live :class:`~docmcp.server.GeneratedServer` in-process, and
:mod:`docmcp.compiler.render` writes the equivalent literals into a
standalone ``server.py``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import Any

from ..ir import ModuleIR, PromptDefinition, ResourceDefinition, ToolDefinition
from ..parser import GenerationError
from ..server import GeneratedServer, PromptArgumentSpec, PromptBinding, ResourceBinding, ResourceOps, ToolBinding
from ..utils.schema import JsonSchema, is_passthrough, output_envelope, parameter_schema


Namespace = ModuleType | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class ToolSchemas:
    """Protocol-facing schemas of one tool."""

    input_schema: JsonSchema
    output_schema: JsonSchema | None = None
    wrap_field: str | None = None
    passthrough: bool = False


def tool_schemas(definition: ToolDefinition) -> ToolSchemas:
    """Decide the input schema, output schema, and boxing of a tool."""
    input_schema = parameter_schema(definition.parameters)
    if is_passthrough(definition.output_schema):
        return ToolSchemas(input_schema=input_schema, passthrough=True)

    envelope = output_envelope(definition.output_schema)
    if envelope is None:
        return ToolSchemas(input_schema=input_schema)
    return ToolSchemas(input_schema=input_schema, output_schema=envelope.schema, wrap_field=envelope.wrap_field)


def prompt_arguments(definition: PromptDefinition) -> tuple[PromptArgumentSpec, ...]:
    return tuple(
        PromptArgumentSpec(name=param.name, kind=param.kind, description=param.description, required=param.required)
        for param in definition.parameters
    )


def resource_parameters(definition: ResourceDefinition) -> tuple[str, ...]:
    return tuple(param.name for param in definition.parameters)


# ---------------------------------------------------------------------------
# Binding construction
# ---------------------------------------------------------------------------


def bind_tools(ir: ModuleIR, namespace: Namespace) -> list[ToolBinding]:
    bindings = []
    for definition in ir.tools:
        schemas = tool_schemas(definition)
        bindings.append(
            ToolBinding(
                name=definition.name,
                description=definition.description,
                fn=_lookup(namespace, definition.function_name),
                input_schema=schemas.input_schema,
                output_schema=schemas.output_schema,
                wrap_field=schemas.wrap_field,
                passthrough=schemas.passthrough,
            )
        )
    return bindings


def bind_prompts(ir: ModuleIR, namespace: Namespace) -> list[PromptBinding]:
    return [
        PromptBinding(
            name=definition.name,
            description=definition.description,
            fn=_lookup(namespace, definition.function_name),
            arguments=prompt_arguments(definition),
        )
        for definition in ir.prompts
    ]


def bind_resources(ir: ModuleIR, namespace: Namespace) -> list[ResourceBinding]:
    bindings = []
    for definition in ir.resources:
        fn = _lookup(namespace, definition.function_name)
        ops = ResourceOps(
            read=fn,
            list=getattr(fn, "list", None) if definition.listable else None,
            subscribe=getattr(fn, "subscribe", None) if definition.subscription is not None else None,
        )
        bindings.append(
            ResourceBinding(
                name=definition.name,
                description=definition.description,
                uri=definition.uri,
                ops=ops,
                mime_type=definition.mime_type,
                parameters=resource_parameters(definition),
                subscription=definition.subscription,
            )
        )
    return bindings


def compile_server(
    ir: ModuleIR, namespace: Namespace, *, name: str | None = None, version: str = "1.0.0"
) -> GeneratedServer:
    """Build a ready-to-run server for *ir* backed by the functions in *namespace*."""
    return GeneratedServer(
        name or ir.module_name,
        version=version,
        tools=bind_tools(ir, namespace),
        prompts=bind_prompts(ir, namespace),
        resources=bind_resources(ir, namespace),
    )


def _lookup(namespace: Namespace, name: str) -> Callable[..., Any]:
    if isinstance(namespace, ModuleType):
        fn = getattr(namespace, name, None)
    else:
        fn = namespace.get(name)
    if not callable(fn):
        raise GenerationError(f"Function {name!r} is not available in the source namespace")
    return fn


__all__ = [
    "ToolSchemas",
    "tool_schemas",
    "prompt_arguments",
    "resource_parameters",
    "bind_tools",
    "bind_prompts",
    "bind_resources",
    "compile_server",
]
