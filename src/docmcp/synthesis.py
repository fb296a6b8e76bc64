# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Structural schema synthesis from Python type annotations.

The synthesizer only understands a closed vocabulary of shapes: primitives,
arrays, string-keyed maps, structured records (``TypedDict``, dataclasses,
pydantic models, ``NamedTuple``) and awaitable wrappers around any of them.
Everything it cannot classify degrades to a string, and shapes with no stable
structural form degrade to ``None``.  It never raises for an unusual type.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import datetime
import inspect
import re
import types as pytypes
from typing import (
    Annotated,
    Any,
    ForwardRef,
    Literal,
    NotRequired,
    Required,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from pydantic import BaseModel

from .ir import (
    ArraySchema,
    ObjectSchema,
    ParamKind,
    PrimitiveSchema,
    PropertySchema,
    RecordSchema,
    SchemaNode,
)


_AWAITABLE_ORIGINS: tuple[Any, ...] = (cabc.Awaitable, cabc.Coroutine, asyncio.Future, asyncio.Task)

_ARRAY_ORIGINS: tuple[Any, ...] = (
    list,
    tuple,
    set,
    frozenset,
    cabc.Sequence,
    cabc.MutableSequence,
    cabc.Set,
    cabc.MutableSet,
    cabc.Collection,
    cabc.Iterable,
    cabc.Iterator,
)

_MAPPING_ORIGINS: tuple[Any, ...] = (dict, cabc.Mapping, cabc.MutableMapping)

_OPAQUE_TYPES: tuple[type[Any], ...] = (
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    re.Pattern,
    BaseException,
)

_STRING = PrimitiveSchema("string")


def synthesize(annotation: Any) -> SchemaNode | None:
    """Return the structural schema for *annotation*.

    ``None`` means the value has no representable shape (``None`` returns,
    opaque built-ins, records whose members all vanish).
    """
    return _synthesize(annotation, frozenset())


def classify_parameter(annotation: Any) -> ParamKind:
    """Map a parameter annotation onto one of the five parameter kinds."""
    annotation = _strip(annotation)

    if annotation is bool:
        return "boolean"
    if annotation in (int, float):
        return "number"
    if annotation is str:
        return "string"

    literal = _literal_primitive(annotation)
    if literal is not None:
        return literal.type

    if _is_array(annotation):
        return "array"
    if _is_mapping(annotation) or _is_record_type(annotation):
        return "object"
    return "string"


def is_optional(annotation: Any) -> bool:
    """Return whether *annotation* admits ``None``."""
    if get_origin(annotation) is Annotated:
        return is_optional(get_args(annotation)[0])
    if _is_union(annotation):
        return any(arg is type(None) or arg is None for arg in get_args(annotation))
    return False


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _synthesize(annotation: Any, seen: frozenset[int]) -> SchemaNode | None:
    annotation = _strip(annotation)

    if annotation is None or annotation is type(None) or annotation is inspect.Parameter.empty:
        return None
    if annotation is bool:
        return PrimitiveSchema("boolean")
    if annotation in (int, float):
        return PrimitiveSchema("number")
    if annotation is str:
        return _STRING

    literal = _literal_primitive(annotation)
    if literal is not None:
        return literal

    if _is_opaque(annotation):
        return None

    if _is_array(annotation):
        items = _synthesize(_element_type(annotation), seen)
        return ArraySchema(items if items is not None else _STRING)

    if _is_mapping(annotation):
        args = get_args(annotation)
        value = _synthesize(args[1], seen) if len(args) == 2 else None
        return RecordSchema(value if value is not None else _STRING)

    if _is_record_type(annotation):
        if id(annotation) in seen:
            return None
        return _synthesize_record(annotation, seen | {id(annotation)})

    return _STRING


def _strip(annotation: Any) -> Any:
    """Peel awaitable wrappers, ``Annotated`` metadata, and ``| None``."""
    while True:
        origin = get_origin(annotation)
        if origin is Annotated or origin in (Required, NotRequired):
            annotation = get_args(annotation)[0]
            continue
        if origin in _AWAITABLE_ORIGINS:
            args = get_args(annotation)
            annotation = args[-1] if args else Any
            continue
        if _is_union(annotation):
            members = [arg for arg in get_args(annotation) if arg is not type(None) and arg is not None]
            if len(members) == 1:
                annotation = members[0]
                continue
            if not members:
                return None
        return annotation


def _is_union(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return origin is Union or origin is pytypes.UnionType


def _literal_primitive(annotation: Any) -> PrimitiveSchema | None:
    if get_origin(annotation) is not Literal:
        return None
    values = get_args(annotation)
    if values and all(isinstance(value, bool) for value in values):
        return PrimitiveSchema("boolean")
    if values and all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in values):
        return PrimitiveSchema("number")
    return _STRING


def _is_opaque(annotation: Any) -> bool:
    target = get_origin(annotation) or annotation
    return inspect.isclass(target) and issubclass(target, _OPAQUE_TYPES)


def _is_array(annotation: Any) -> bool:
    target = get_origin(annotation) or annotation
    if target in (str, bytes, bytearray):
        return False
    if _is_record_type(annotation):
        return False
    return target in _ARRAY_ORIGINS


def _element_type(annotation: Any) -> Any:
    args = [arg for arg in get_args(annotation) if arg is not Ellipsis]
    return args[0] if args else Any


def _is_mapping(annotation: Any) -> bool:
    target = get_origin(annotation) or annotation
    return target in _MAPPING_ORIGINS


def _is_record_type(annotation: Any) -> bool:
    if not inspect.isclass(annotation):
        return False
    if is_typeddict(annotation) or dataclasses.is_dataclass(annotation):
        return True
    if issubclass(annotation, BaseModel):
        return True
    return issubclass(annotation, tuple) and hasattr(annotation, "_fields")


def _synthesize_record(annotation: type[Any], seen: frozenset[int]) -> SchemaNode | None:
    properties: list[PropertySchema] = []
    for name, member_type, optional in _record_members(annotation):
        if name.startswith("_"):
            continue
        schema = _synthesize(member_type, seen)
        if schema is None:
            continue
        properties.append(PropertySchema(name=name, schema=schema, optional=optional))

    if not properties:
        return None
    return ObjectSchema(tuple(properties))


def _record_members(annotation: type[Any]) -> list[tuple[str, Any, bool]]:
    """Return ``(name, type, optional)`` for each declared member, in order."""
    if issubclass(annotation, BaseModel):
        return [
            (name, info.annotation, not info.is_required()) for name, info in annotation.model_fields.items()
        ]

    hints = _resolved_hints(annotation)

    if is_typeddict(annotation):
        optional_keys = getattr(annotation, "__optional_keys__", frozenset())
        return [(name, hint, name in optional_keys) for name, hint in hints.items()]

    if dataclasses.is_dataclass(annotation):
        members = []
        for item in dataclasses.fields(annotation):
            has_default = (
                item.default is not dataclasses.MISSING or item.default_factory is not dataclasses.MISSING
            )
            members.append((item.name, hints.get(item.name, Any), has_default))
        return members

    defaults = getattr(annotation, "_field_defaults", {})
    return [(name, hints.get(name, Any), name in defaults) for name in annotation._fields]


def _resolved_hints(annotation: type[Any]) -> dict[str, Any]:
    try:
        return get_type_hints(annotation, include_extras=True)
    except Exception:
        raw = dict(getattr(annotation, "__annotations__", {}))
        return {name: (Any if isinstance(hint, (str, ForwardRef)) else hint) for name, hint in raw.items()}


__all__ = ["synthesize", "classify_parameter", "is_optional"]
