# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Docstring annotations that classify exported functions.

A documented function becomes a tool, a prompt, or a resource depending on
the tags in its docstring::

    def read_config(section: str) -> str:
        \"\"\"Read one section of the configuration file.

        @uri config://sections/{section}
        @mimeType "text/plain"
        @param section Name of the section to read
        \"\"\"

Tag lines start with ``@``.  Everything else that is not blank is
description text.  Sphinx-style ``:param name: text`` fields are accepted as
parameter notes too, and other ``:field:`` lines are ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
import inspect
import re
from types import ModuleType
from typing import Any, Literal

from .utils import get_logger


DefinitionKind = Literal["tool", "prompt", "resource"]

_BLOCK_MARKER = re.compile(r"^\s*\*\s?")
_PARAM_TAG = re.compile(r"^@param\s+(?:\{[^}]+\}\s+)?(\w+)\s*(.*)$")
_SPHINX_PARAM = re.compile(r"^:param\s+(?:[^:\s]+\s+)?(\w+)\s*:\s*(.*)$")
_SPHINX_FIELD = re.compile(r"^:\w[^:]*:")
_RESOURCE_TAG = re.compile(r"^@(?:resource|uri)\b\s*(.*)$")
_MIME_TAG = re.compile(r"^@mimeType\b\s*(.*)$")
_TOOL_TAG = re.compile(r"^@tool\b\s*(\S*)")
_PROMPT_TAG = re.compile(r"^@prompt\b\s*(\S*)")
_QUOTES = re.compile(r"^[\"']|[\"']$")

_logger = get_logger("docmcp.annotations")


@dataclass(slots=True)
class DocAnnotation:
    """Classification and free text extracted from one docstring."""

    kind: DefinitionKind
    description: str
    params: dict[str, str] = field(default_factory=dict)
    name: str | None = None
    uri: str | None = None
    mime_type: str | None = None


def parse_docstring(text: str) -> DocAnnotation:
    """Parse a docstring into a :class:`DocAnnotation`.

    A resource tag wins over everything else, then a prompt tag; a function
    without either is a tool.  ``@tool`` and ``@prompt`` may carry a custom
    name, otherwise the function name is used.
    """
    description: list[str] = []
    params: dict[str, str] = {}
    uri: str | None = None
    mime_type: str | None = None
    tool_name: str | None = None
    prompt_name: str | None = None
    is_prompt = False

    for raw in text.splitlines():
        line = _BLOCK_MARKER.sub("", raw, count=1).strip()
        if not line:
            continue

        if line.startswith("@param"):
            match = _PARAM_TAG.match(line)
            if match:
                params[match.group(1)] = match.group(2).strip()
        elif line.startswith(("@resource", "@uri")):
            match = _RESOURCE_TAG.match(line)
            if match and match.group(1).strip():
                uri = match.group(1).strip()
        elif line.startswith("@mimeType"):
            match = _MIME_TAG.match(line)
            if match and match.group(1).strip():
                mime_type = _QUOTES.sub("", match.group(1).strip())
        elif line.startswith("@tool"):
            match = _TOOL_TAG.match(line)
            tool_name = match.group(1) if match and match.group(1) else None
        elif line.startswith("@prompt"):
            is_prompt = True
            match = _PROMPT_TAG.match(line)
            prompt_name = match.group(1) if match and match.group(1) else None
        elif line.startswith("@"):
            continue
        elif line.startswith(":"):
            match = _SPHINX_PARAM.match(line)
            if match:
                params[match.group(1)] = match.group(2).strip()
            elif not _SPHINX_FIELD.match(line):
                description.append(line)
        else:
            description.append(line)

    joined = " ".join(description).strip()

    if uri:
        return DocAnnotation("resource", joined, params, uri=uri, mime_type=mime_type)
    if is_prompt:
        return DocAnnotation("prompt", joined, params, name=prompt_name)
    return DocAnnotation("tool", joined, params, name=tool_name)


def exported_functions(module: ModuleType) -> Iterator[tuple[str, Callable[..., Any]]]:
    """Yield ``(name, function)`` pairs the module exports.

    ``__all__`` decides when present.  Otherwise every public function defined
    in the module itself counts, in definition order.
    """
    namespace = vars(module)
    declared = namespace.get("__all__")

    if declared is not None:
        for name in declared:
            candidate = namespace.get(name)
            if inspect.isfunction(candidate):
                yield name, candidate
        return

    for name, candidate in namespace.items():
        if name.startswith("_") or not inspect.isfunction(candidate):
            continue
        if candidate.__module__ != module.__name__:
            continue
        yield name, candidate


def extract_functions(module: ModuleType) -> Iterator[tuple[str, Callable[..., Any], DocAnnotation]]:
    """Yield every exported function whose docstring has a description."""
    for name, fn in exported_functions(module):
        doc = fn.__doc__
        if not doc or not doc.strip():
            _logger.debug("Skipping %s: no docstring", name)
            continue

        annotation = parse_docstring(inspect.cleandoc(doc))
        if not annotation.description:
            _logger.debug("Skipping %s: docstring has no description", name)
            continue

        yield name, fn, annotation


__all__ = ["DefinitionKind", "DocAnnotation", "parse_docstring", "exported_functions", "extract_functions"]
