# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Intermediate representation shared by the extraction front-end and the compiler.

Every record here is plain data.  The assembler in :mod:`docmcp.parser` builds
one :class:`ModuleIR` per generation run; the compiler in
:mod:`docmcp.compiler` consumes it and throws it away.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import re
from typing import Literal, TypeAlias


ParamKind = Literal["string", "number", "boolean", "array", "object"]
PrimitiveKind = Literal["string", "number", "boolean"]

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


# ---------------------------------------------------------------------------
# Schema nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PrimitiveSchema:
    type: PrimitiveKind


@dataclass(frozen=True, slots=True)
class ArraySchema:
    items: SchemaNode


@dataclass(frozen=True, slots=True)
class RecordSchema:
    """String-keyed map whose values all share ``value_type``."""

    value_type: SchemaNode


@dataclass(frozen=True, slots=True)
class PropertySchema:
    name: str
    schema: SchemaNode
    optional: bool = False


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    properties: tuple[PropertySchema, ...]

    def find(self, name: str) -> PropertySchema | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


SchemaNode: TypeAlias = PrimitiveSchema | ArraySchema | RecordSchema | ObjectSchema


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class SubscriptionMode(str, Enum):
    """How a subscribable resource produces update signals."""

    GENERATOR = "generator"
    POLL = "poll"


@dataclass(slots=True)
class ParameterDescriptor:
    name: str
    kind: ParamKind = "string"
    description: str | None = None
    required: bool = True


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    output_schema: SchemaNode | None = None
    function_name: str = ""
    return_annotation: str = ""

    def __post_init__(self) -> None:
        if not self.function_name:
            self.function_name = self.name


@dataclass(slots=True)
class PromptDefinition:
    name: str
    description: str
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    function_name: str = ""

    def __post_init__(self) -> None:
        if not self.function_name:
            self.function_name = self.name


@dataclass(slots=True)
class ResourceDefinition:
    name: str
    description: str
    uri: str
    mime_type: str | None = None
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    subscription: SubscriptionMode | None = None
    listable: bool = False
    function_name: str = ""

    def __post_init__(self) -> None:
        if not self.function_name:
            self.function_name = self.name

    @property
    def is_templated(self) -> bool:
        return bool(self.parameters)

    @property
    def placeholders(self) -> list[str]:
        return uri_placeholders(self.uri)


@dataclass(slots=True)
class ModuleIR:
    """Everything discovered in one source module."""

    module_name: str
    tools: list[ToolDefinition] = field(default_factory=list)
    prompts: list[PromptDefinition] = field(default_factory=list)
    resources: list[ResourceDefinition] = field(default_factory=list)
    source_path: Path | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.tools or self.prompts or self.resources)

    @property
    def has_subscriptions(self) -> bool:
        return any(resource.subscription is not None for resource in self.resources)

    @property
    def function_names(self) -> list[str]:
        """Names of the source functions referenced by the IR, in first-use order."""
        names: list[str] = []
        for definition in (*self.tools, *self.prompts, *self.resources):
            if definition.function_name not in names:
                names.append(definition.function_name)
        return names


def uri_placeholders(uri: str) -> list[str]:
    """Return the ``{name}`` placeholders of *uri* in order of appearance."""
    return [match.strip() for match in _PLACEHOLDER.findall(uri)]


__all__ = [
    "ParamKind",
    "PrimitiveKind",
    "PrimitiveSchema",
    "ArraySchema",
    "RecordSchema",
    "PropertySchema",
    "ObjectSchema",
    "SchemaNode",
    "SubscriptionMode",
    "ParameterDescriptor",
    "ToolDefinition",
    "PromptDefinition",
    "ResourceDefinition",
    "ModuleIR",
    "uri_placeholders",
]
