# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Lower structural schema nodes to MCP-compatible JSON Schema.

MCP requires structured tool payloads to be JSON objects.  Object-shaped
outputs travel as they are; array outputs are boxed under a synthetic
``results`` property, recorded in a :class:`SchemaEnvelope` so the runtime can
apply the same boxing to the value it returns.  Primitive and map outputs get
no output schema at all and travel as text only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic.json_schema import JsonSchemaValue

from ..ir import (
    ArraySchema,
    ObjectSchema,
    ParameterDescriptor,
    PrimitiveSchema,
    RecordSchema,
    SchemaNode,
)


JsonSchema = JsonSchemaValue


DEFAULT_WRAP_FIELD = "results"
"""Property that carries an array output inside structured content."""


class SchemaError(RuntimeError):
    """Raised when a value does not fit the envelope it is boxed into."""


@dataclass(frozen=True, slots=True)
class SchemaEnvelope:
    """Output schema plus the boxing applied to values before they travel.

    Attributes:
        schema: Object-shaped JSON Schema advertised as ``outputSchema``.
        wrap_field: Property holding a boxed array, or ``None`` when the
            value already is an object.
    """

    schema: JsonSchema
    wrap_field: str | None = None

    @property
    def is_wrapped(self) -> bool:
        return self.wrap_field is not None

    def wrap(self, value: Any) -> Mapping[str, Any]:
        """Box *value* into structured content.

        Raises:
            SchemaError: If the envelope expects an object and *value* is not
                a mapping.
        """
        if self.is_wrapped:
            return {self.wrap_field: value}
        if isinstance(value, Mapping):
            return value
        raise SchemaError(f"Expected an object result, got {type(value).__name__}")


def to_json_schema(node: SchemaNode) -> JsonSchema:
    """Return the JSON Schema fragment for one schema node."""
    if isinstance(node, PrimitiveSchema):
        return {"type": node.type}
    if isinstance(node, ArraySchema):
        return {"type": "array", "items": to_json_schema(node.items)}
    if isinstance(node, RecordSchema):
        return {"type": "object", "additionalProperties": to_json_schema(node.value_type)}
    if isinstance(node, ObjectSchema):
        schema: JsonSchema = {
            "type": "object",
            "properties": {prop.name: to_json_schema(prop.schema) for prop in node.properties},
        }
        required = [prop.name for prop in node.properties if not prop.optional]
        if required:
            schema["required"] = required
        return schema
    raise TypeError(f"Unknown schema node: {node!r}")


def parameter_schema(parameters: Iterable[ParameterDescriptor]) -> JsonSchema:
    """Build a tool ``inputSchema`` from parameter descriptors.

    Compound parameters advertise only their top-level JSON type.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in parameters:
        entry: dict[str, Any] = {"type": param.kind}
        if param.description:
            entry["description"] = param.description
        properties[param.name] = entry
        if param.required:
            required.append(param.name)

    schema: JsonSchema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def output_envelope(node: SchemaNode | None, *, wrap_field: str = DEFAULT_WRAP_FIELD) -> SchemaEnvelope | None:
    """Return the output envelope for a tool whose result has shape *node*.

    Only objects and arrays get one.
    """
    if isinstance(node, ObjectSchema):
        return SchemaEnvelope(schema=to_json_schema(node))
    if isinstance(node, ArraySchema):
        wrapped: JsonSchema = {
            "type": "object",
            "properties": {wrap_field: to_json_schema(node)},
            "required": [wrap_field],
        }
        return SchemaEnvelope(schema=wrapped, wrap_field=wrap_field)
    return None


def is_passthrough(node: SchemaNode | None) -> bool:
    """Return whether a result of shape *node* already is a tool-call result.

    That is the case for objects that declare a ``content`` array.
    """
    if not isinstance(node, ObjectSchema):
        return False
    content = node.find("content")
    return content is not None and isinstance(content.schema, ArraySchema)


__all__ = [
    "JsonSchema",
    "SchemaError",
    "SchemaEnvelope",
    "DEFAULT_WRAP_FIELD",
    "to_json_schema",
    "parameter_schema",
    "output_envelope",
    "is_passthrough",
]
