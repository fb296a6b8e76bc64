# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Render generated artifacts as source text.

Schemas are inlined as Python literals so a generated ``server.py`` needs
nothing at runtime beyond the original module and :mod:`docmcp.server`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import pprint
import textwrap
from typing import Any

from .lowering import prompt_arguments, resource_parameters, tool_schemas
from ..ir import ModuleIR, PromptDefinition, ResourceDefinition, ToolDefinition


_INDENT = "    "


def render_server_module(ir: ModuleIR, *, server_name: str, version: str = "1.0.0", tools_module: str = "tools") -> str:
    """Return the source of a standalone server module for *ir*."""
    runtime_names = ["GeneratedServer", "run_server"]
    if ir.tools:
        runtime_names.append("ToolBinding")
    if ir.prompts:
        runtime_names.extend(["PromptArgumentSpec", "PromptBinding"])
    if ir.resources:
        runtime_names.extend(["ResourceBinding", "ResourceOps"])

    lines = [
        f'"""MCP server for {ir.module_name}, generated by docmcp.',
        "",
        "Regenerate it instead of editing by hand.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
    ]
    if ir.has_subscriptions:
        lines.append("from docmcp.ir import SubscriptionMode")
    lines.append(_import_block("docmcp.server", sorted(runtime_names)))
    lines.append("")
    lines.append(_import_block(tools_module, ir.function_names))
    lines.extend(["", ""])
    lines.append(f"SERVER_NAME = {server_name!r}")
    lines.append(f"SERVER_VERSION = {version!r}")
    lines.extend(["", ""])

    lines.append(_collection("TOOLS", [_tool_binding(tool) for tool in ir.tools]))
    lines.append("")
    lines.append(_collection("PROMPTS", [_prompt_binding(prompt) for prompt in ir.prompts]))
    lines.append("")
    lines.append(_collection("RESOURCES", [_resource_binding(resource) for resource in ir.resources]))
    lines.extend(["", ""])

    lines.append(
        textwrap.dedent(
            '''\
            def get_server() -> GeneratedServer:
                """Return a fresh server instance; HTTP mode builds one per session."""
                return GeneratedServer(
                    SERVER_NAME, version=SERVER_VERSION, tools=TOOLS, prompts=PROMPTS, resources=RESOURCES
                )


            def main(argv: list[str] | None = None) -> None:
                run_server(get_server, name=SERVER_NAME, argv=argv)


            if __name__ == "__main__":
                main()
            '''
        )
    )
    return "\n".join(lines)


def render_tools_module(ir: ModuleIR, source_module: str) -> str:
    """Return the source of the module re-exporting the served functions."""
    names = ir.function_names
    return "\n".join(
        [
            f'"""Functions from {source_module} served by server.py."""',
            "",
            _import_block(source_module, names),
            "",
            "",
            f"__all__ = {_literal(names, 0)}",
            "",
        ]
    )


def render_manifest(name: str, modules: Sequence[str], dependencies: Iterable[str] = (), *, version: str = "1.0.0") -> str:
    """Return ``pyproject.toml`` text for a generated server directory."""
    requirements = ["docmcp"]
    for dependency in dependencies:
        if dependency not in requirements:
            requirements.append(dependency)

    return "\n".join(
        [
            "[build-system]",
            'requires = ["setuptools>=68"]',
            'build-backend = "setuptools.build_meta"',
            "",
            "[project]",
            f"name = {_toml_string(f'{name}-mcp-server')}",
            f"version = {_toml_string(version)}",
            f"description = {_toml_string(f'MCP server generated from {name}')}",
            'requires-python = ">=3.11"',
            "dependencies = [",
            *(f"    {_toml_string(requirement)}," for requirement in requirements),
            "]",
            "",
            "[project.scripts]",
            f'{_toml_string(name)} = "server:main"',
            "",
            "[tool.setuptools]",
            f"py-modules = [{', '.join(_toml_string(module) for module in modules)}]",
            "",
        ]
    )


# ---------------------------------------------------------------------------
# Binding literals
# ---------------------------------------------------------------------------


def _tool_binding(definition: ToolDefinition) -> str:
    schemas = tool_schemas(definition)
    fields: list[tuple[str, str]] = [
        ("name", repr(definition.name)),
        ("description", repr(definition.description)),
        ("fn", definition.function_name),
        ("input_schema", _literal(schemas.input_schema, 2)),
    ]
    if schemas.output_schema is not None:
        fields.append(("output_schema", _literal(schemas.output_schema, 2)))
    if schemas.wrap_field is not None:
        fields.append(("wrap_field", repr(schemas.wrap_field)))
    if schemas.passthrough:
        fields.append(("passthrough", "True"))
    return _call("ToolBinding", fields)


def _prompt_binding(definition: PromptDefinition) -> str:
    arguments = [
        _call(
            "PromptArgumentSpec",
            [
                ("name", repr(arg.name)),
                ("kind", repr(arg.kind)),
                ("description", repr(arg.description)),
                ("required", repr(arg.required)),
            ],
            depth=3,
        )
        for arg in prompt_arguments(definition)
    ]
    fields = [
        ("name", repr(definition.name)),
        ("description", repr(definition.description)),
        ("fn", definition.function_name),
        ("arguments", _sequence(arguments, depth=2, tuple_=True)),
    ]
    return _call("PromptBinding", fields)


def _resource_binding(definition: ResourceDefinition) -> str:
    fn = definition.function_name
    ops = [("read", fn)]
    if definition.listable:
        ops.append(("list", f"{fn}.list"))
    if definition.subscription is not None:
        ops.append(("subscribe", f"{fn}.subscribe"))

    fields = [
        ("name", repr(definition.name)),
        ("description", repr(definition.description)),
        ("uri", repr(definition.uri)),
        ("ops", "ResourceOps(" + ", ".join(f"{key}={value}" for key, value in ops) + ")"),
        ("mime_type", repr(definition.mime_type)),
        ("parameters", repr(resource_parameters(definition))),
    ]
    if definition.subscription is not None:
        fields.append(("subscription", f"SubscriptionMode.{definition.subscription.name}"))
    return _call("ResourceBinding", fields)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _import_block(module: str, names: Sequence[str]) -> str:
    if not names:
        return f"import {module}  # noqa: F401"
    single = f"from {module} import {', '.join(names)}"
    if len(single) <= 100:
        return single
    body = "".join(f"{_INDENT}{name},\n" for name in names)
    return f"from {module} import (\n{body})"


def _collection(name: str, items: list[str]) -> str:
    return f"{name} = {_sequence(items, depth=1)}"


def _sequence(items: list[str], *, depth: int, tuple_: bool = False) -> str:
    open_, close = ("(", ")") if tuple_ else ("[", "]")
    if not items:
        return open_ + close
    inner = _INDENT * depth
    body = "".join(f"{inner}{item},\n" for item in items)
    return f"{open_}\n{body}{_INDENT * (depth - 1)}{close}"


def _call(name: str, fields: list[tuple[str, str]], *, depth: int = 2) -> str:
    inner = _INDENT * depth
    body = "".join(f"{inner}{key}={value},\n" for key, value in fields)
    return f"{name}(\n{body}{_INDENT * (depth - 1)})"


def _literal(value: Any, depth: int) -> str:
    text = pprint.pformat(value, width=100 - len(_INDENT) * depth, sort_dicts=False)
    first, _, rest = text.partition("\n")
    if not rest:
        return first
    return first + "\n" + textwrap.indent(rest, _INDENT * depth)


def _toml_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = ["render_server_module", "render_tools_module", "render_manifest"]
