# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Assemble the intermediate representation of one source module.

The assembler imports the module, walks its exported functions through the
docstring extractor and the schema synthesizer, and groups the results into a
:class:`~docmcp.ir.ModuleIR`.  Inconsistent definitions raise
:class:`GenerationError` here, before the compiler sees anything.
"""

from __future__ import annotations

from collections.abc import Callable
import importlib.util
import inspect
from pathlib import Path
import sys
from types import ModuleType
from typing import Any

from .annotations import DocAnnotation, extract_functions
from .ir import (
    ModuleIR,
    ParameterDescriptor,
    PromptDefinition,
    ResourceDefinition,
    SubscriptionMode,
    ToolDefinition,
    uri_placeholders,
)
from .synthesis import classify_parameter, is_optional, synthesize
from .utils import get_logger


_logger = get_logger("docmcp.parser")

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class GenerationError(RuntimeError):
    """Raised when a source module cannot be turned into a server."""


def load_module(path: str | Path) -> ModuleType:
    """Import the Python file at *path* under a private module name.

    The file's directory sits at the front of ``sys.path`` while the module
    body runs, so sibling imports resolve the way they do for a script.
    """
    source = Path(path).resolve()
    if not source.is_file():
        raise GenerationError(f"Source file not found: {source}")

    module_name = f"_docmcp_source_{source.stem}"
    spec = importlib.util.spec_from_file_location(module_name, source)
    if spec is None or spec.loader is None:
        raise GenerationError(f"Cannot import {source}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    directory = str(source.parent)
    sys.path.insert(0, directory)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise GenerationError(f"Failed to import {source}: {exc}") from exc
    finally:
        if directory in sys.path:
            sys.path.remove(directory)
    return module


def parse_file(path: str | Path) -> ModuleIR:
    source = Path(path).resolve()
    return parse_module(load_module(source), source_path=source)


def parse_module(module: ModuleType, *, source_path: Path | None = None) -> ModuleIR:
    """Build the IR for every documented function *module* exports."""
    name = source_path.stem if source_path is not None else module.__name__.rpartition(".")[2]
    ir = ModuleIR(module_name=name, source_path=source_path)

    for function_name, fn, annotation in extract_functions(module):
        signature = _signature(fn)
        parameters = _parameters(signature, annotation)

        if annotation.kind == "resource":
            ir.resources.append(_resource(function_name, fn, annotation, parameters))
        elif annotation.kind == "prompt":
            ir.prompts.append(
                PromptDefinition(
                    name=annotation.name or function_name,
                    description=annotation.description,
                    parameters=parameters,
                    function_name=function_name,
                )
            )
        else:
            ir.tools.append(
                ToolDefinition(
                    name=annotation.name or function_name,
                    description=annotation.description,
                    parameters=parameters,
                    output_schema=synthesize(signature.return_annotation),
                    function_name=function_name,
                    return_annotation=_annotation_text(signature.return_annotation),
                )
            )

    _check_unique("tool", [tool.name for tool in ir.tools])
    _check_unique("prompt", [prompt.name for prompt in ir.prompts])
    _check_unique("resource", [resource.name for resource in ir.resources])
    _check_unique("resource URI", [resource.uri for resource in ir.resources])
    for resource in ir.resources:
        _check_placeholders(resource)

    return ir


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _signature(fn: Callable[..., Any]) -> inspect.Signature:
    try:
        return inspect.signature(fn, eval_str=True)
    except (NameError, TypeError, SyntaxError):
        _logger.debug("Could not resolve annotations of %s; using raw text", fn.__qualname__)
        return inspect.signature(fn)


def _parameters(signature: inspect.Signature, annotation: DocAnnotation) -> list[ParameterDescriptor]:
    descriptors: list[ParameterDescriptor] = []
    for param in signature.parameters.values():
        if param.kind in _VARIADIC:
            continue
        has_default = param.default is not inspect.Parameter.empty
        descriptors.append(
            ParameterDescriptor(
                name=param.name,
                kind=classify_parameter(param.annotation),
                description=annotation.params.get(param.name),
                required=not (has_default or is_optional(param.annotation)),
            )
        )
    return descriptors


def _resource(
    function_name: str,
    fn: Callable[..., Any],
    annotation: DocAnnotation,
    parameters: list[ParameterDescriptor],
) -> ResourceDefinition:
    subscribe = getattr(fn, "subscribe", None)
    mode: SubscriptionMode | None = None
    if callable(subscribe):
        if inspect.isasyncgenfunction(subscribe) or inspect.isgeneratorfunction(subscribe):
            mode = SubscriptionMode.GENERATOR
        else:
            mode = SubscriptionMode.POLL

    return ResourceDefinition(
        name=function_name,
        description=annotation.description,
        uri=annotation.uri or "",
        mime_type=annotation.mime_type,
        parameters=parameters,
        subscription=mode,
        listable=callable(getattr(fn, "list", None)),
        function_name=function_name,
    )


def _check_unique(label: str, names: list[str]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise GenerationError(f"Duplicate {label} name: {name!r}")
        seen.add(name)


def _check_placeholders(resource: ResourceDefinition) -> None:
    placeholders = set(uri_placeholders(resource.uri))
    names = {param.name for param in resource.parameters}

    unknown = sorted(placeholders - names)
    if unknown:
        raise GenerationError(
            f"Resource {resource.name!r}: URI placeholders {unknown} have no matching parameter"
        )

    unbound = sorted(param.name for param in resource.parameters if param.required and param.name not in placeholders)
    if unbound:
        raise GenerationError(
            f"Resource {resource.name!r}: required parameters {unbound} do not appear in {resource.uri!r}"
        )


def _annotation_text(annotation: Any) -> str:
    if annotation is inspect.Signature.empty:
        return ""
    if isinstance(annotation, str):
        return annotation
    return inspect.formatannotation(annotation)


__all__ = ["GenerationError", "load_module", "parse_file", "parse_module"]
