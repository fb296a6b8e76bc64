# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from docmcp.ir import ArraySchema, ObjectSchema, PrimitiveSchema, SubscriptionMode
from docmcp.parser import GenerationError, load_module, parse_file


def _write(tmp_path: Path, name: str, source: str) -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


def test_calculator_module(calculator_path: Path) -> None:
    ir = parse_file(calculator_path)

    assert ir.module_name == "calculator"
    assert [tool.name for tool in ir.tools] == ["add", "validate_email", "split_words", "yell"]
    assert [prompt.name for prompt in ir.prompts] == ["greeting"]
    assert [resource.name for resource in ir.resources] == ["service_status", "note"]
    assert ir.function_names == [
        "add",
        "validate_email",
        "split_words",
        "shout",
        "greeting",
        "service_status",
        "note",
    ]


def test_tool_definition(calculator_path: Path) -> None:
    add = parse_file(calculator_path).tools[0]

    assert add.description == "Add two numbers"
    assert [(p.name, p.kind, p.description, p.required) for p in add.parameters] == [
        ("a", "number", "First addend", True),
        ("b", "number", "Second addend", True),
    ]
    assert add.output_schema == PrimitiveSchema("number")
    assert add.return_annotation == "float"


def test_optional_parameters(calculator_path: Path) -> None:
    split_words = parse_file(calculator_path).tools[2]

    assert [(p.name, p.required) for p in split_words.parameters] == [("text", True), ("limit", False)]
    assert split_words.output_schema == ArraySchema(PrimitiveSchema("string"))


def test_custom_tool_name_keeps_function(calculator_path: Path) -> None:
    yell = parse_file(calculator_path).tools[3]

    assert yell.name == "yell"
    assert yell.function_name == "shout"
    assert isinstance(yell.output_schema, ObjectSchema)


def test_resources(calculator_path: Path) -> None:
    status, note = parse_file(calculator_path).resources

    assert status.uri == "status://service"
    assert status.mime_type == "application/json"
    assert status.subscription is SubscriptionMode.POLL
    assert not status.is_templated
    assert not status.listable

    assert note.uri == "notes://{name}"
    assert note.is_templated
    assert note.listable
    assert note.subscription is None
    assert note.placeholders == ["name"]


def test_generator_subscriptions_and_all(fixtures_dir: Path) -> None:
    ir = parse_file(fixtures_dir / "ticker.py")

    assert [resource.name for resource in ir.resources] == ["latest_tick", "counter"]
    assert all(resource.subscription is SubscriptionMode.GENERATOR for resource in ir.resources)
    assert ir.has_subscriptions
    assert not ir.tools


def test_undocumented_module_is_empty(fixtures_dir: Path) -> None:
    assert parse_file(fixtures_dir / "undocumented.py").is_empty


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(GenerationError, match="not found"):
        parse_file(tmp_path / "missing.py")


def test_import_failure(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.py", "raise RuntimeError('boom')\n")

    with pytest.raises(GenerationError, match="boom"):
        load_module(path)


def test_sibling_imports_resolve(tmp_path: Path) -> None:
    _write(tmp_path, "siblinghelper.py", "FACTOR = 3\n")
    path = _write(
        tmp_path,
        "uses_sibling.py",
        '''
        from siblinghelper import FACTOR

        def triple(x: int) -> int:
            """Triple a number."""
            return x * FACTOR
        ''',
    )

    ir = parse_file(path)

    assert [tool.name for tool in ir.tools] == ["triple"]


def test_variadic_parameters_skipped_and_positional_only_kept(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "variadic.py",
        '''
        def collect(first: str, *rest: str, **options: str) -> str:
            """Join values."""
            return first

        def positional(a: int, /) -> int:
            """Echo a number."""
            return a
        ''',
    )

    ir = parse_file(path)

    assert [tool.name for tool in ir.tools] == ["collect", "positional"]
    assert [param.name for param in ir.tools[0].parameters] == ["first"]
    assert [param.name for param in ir.tools[1].parameters] == ["a"]
    assert not ir.tools[1].parameters[0].optional


def test_duplicate_tool_names(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "dupes.py",
        '''
        def first() -> str:
            """One.

            @tool same
            """

        def second() -> str:
            """Two.

            @tool same
            """
        ''',
    )

    with pytest.raises(GenerationError, match="Duplicate tool name"):
        parse_file(path)


def test_duplicate_resource_uris(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "dupe_uris.py",
        '''
        def one() -> str:
            """One.

            @uri data://x
            """

        def two() -> str:
            """Two.

            @uri data://x
            """
        ''',
    )

    with pytest.raises(GenerationError, match="Duplicate resource URI"):
        parse_file(path)


def test_unknown_placeholder(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "placeholders.py",
        '''
        def page(number: int) -> str:
            """A page.

            @uri book://{chapter}/{number}
            """
        ''',
    )

    with pytest.raises(GenerationError, match="chapter"):
        parse_file(path)


def test_required_parameter_missing_from_uri(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "unbound.py",
        '''
        def page(number: int, fmt: str) -> str:
            """A page.

            @uri book://{number}
            """
        ''',
    )

    with pytest.raises(GenerationError, match="fmt"):
        parse_file(path)


def test_optional_parameter_may_stay_out_of_uri(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "optional_param.py",
        '''
        def page(number: int, fmt: str = "md") -> str:
            """A page.

            @uri book://{number}
            """
        ''',
    )

    (resource,) = parse_file(path).resources

    assert resource.placeholders == ["number"]
    assert [param.name for param in resource.parameters] == ["number", "fmt"]
