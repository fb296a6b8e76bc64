# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import importlib
from pathlib import Path
import shutil
import sys
import tomllib

from mcp.shared.memory import create_connected_server_and_client_session
import pytest

from docmcp.compiler import GeneratorOptions, generate_server
from docmcp.compiler.generator import read_requirements
from docmcp.parser import GenerationError


GENERATED_MODULES = ("server", "tools", "calculator")


@pytest.fixture
def generated(tmp_path: Path, calculator_path: Path, monkeypatch: pytest.MonkeyPatch):
    artifacts = generate_server(GeneratorOptions(entry_path=calculator_path, output_dir=tmp_path / "out"))

    monkeypatch.syspath_prepend(str(artifacts.output_dir))
    for name in GENERATED_MODULES:
        monkeypatch.delitem(sys.modules, name, raising=False)
    importlib.invalidate_caches()

    yield artifacts, importlib.import_module("server")

    for name in GENERATED_MODULES:
        sys.modules.pop(name, None)


def test_artifacts_are_written(generated) -> None:
    artifacts, _ = generated

    assert sorted(path.name for path in artifacts.output_dir.iterdir()) == [
        "calculator.py",
        "pyproject.toml",
        "server.py",
        "tools.py",
    ]
    assert artifacts.source_copy.read_text() == Path(__file__).parent.joinpath("fixtures", "calculator.py").read_text()

    manifest = tomllib.loads(artifacts.manifest.read_text())
    assert manifest["project"]["name"] == "calculator-mcp-server"
    assert manifest["project"]["scripts"] == {"calculator": "server:main"}
    assert manifest["project"]["dependencies"] == ["docmcp"]


@pytest.mark.anyio
async def test_generated_server_runs(generated) -> None:
    _, module = generated
    server = module.get_server()

    assert server.name == "calculator"
    assert server.tool_names == ["add", "validate_email", "split_words", "yell"]
    assert server.prompt_names == ["greeting"]
    assert server.resource_names == ["service_status", "note"]
    assert server.supports_subscriptions

    async with create_connected_server_and_client_session(server) as client:
        result = await client.call_tool("add", {"a": 2, "b": 3})
        note = await client.read_resource("notes://todo")

    assert result.content[0].text == "5"
    assert note.contents[0].text == "buy milk"


def test_get_server_returns_fresh_instances(generated) -> None:
    _, module = generated

    assert module.get_server() is not module.get_server()


def test_custom_name_and_requirements(tmp_path: Path, calculator_path: Path) -> None:
    source_dir = tmp_path / "src"
    source_dir.mkdir()
    entry = Path(shutil.copy(calculator_path, source_dir / "calculator.py"))
    (source_dir / "requirements.txt").write_text("httpx>=0.27  # client\n-r other.txt\n\n# comment\nanyio\n")

    artifacts = generate_server(
        GeneratorOptions(entry_path=entry, output_dir=tmp_path / "out", server_name="calc", version="0.3.0")
    )

    manifest = tomllib.loads(artifacts.manifest.read_text())
    assert manifest["project"]["name"] == "calc-mcp-server"
    assert manifest["project"]["version"] == "0.3.0"
    assert manifest["project"]["dependencies"] == ["docmcp", "httpx>=0.27", "anyio"]
    assert "SERVER_NAME = 'calc'" in artifacts.server_module.read_text()


def test_default_name_uses_hyphens(tmp_path: Path) -> None:
    entry = tmp_path / "string_utils.py"
    entry.write_text('def reverse(text: str) -> str:\n    """Reverse text."""\n    return text[::-1]\n')

    artifacts = generate_server(GeneratorOptions(entry_path=entry, output_dir=tmp_path / "out"))

    assert "SERVER_NAME = 'string-utils'" in artifacts.server_module.read_text()
    assert artifacts.dependencies == []


def test_module_without_documented_functions(tmp_path: Path, fixtures_dir: Path) -> None:
    output = tmp_path / "out"

    with pytest.raises(GenerationError, match="No exported functions with docstrings found"):
        generate_server(GeneratorOptions(entry_path=fixtures_dir / "undocumented.py", output_dir=output))

    assert not output.exists()


@pytest.mark.parametrize("filename", ["server.py", "tools.py", "my-module.py"])
def test_unusable_module_names(tmp_path: Path, filename: str) -> None:
    entry = tmp_path / filename
    entry.write_text('def ping() -> str:\n    """Ping."""\n    return "pong"\n')

    with pytest.raises(GenerationError):
        generate_server(GeneratorOptions(entry_path=entry, output_dir=tmp_path / "out"))


def test_read_requirements_missing_file(tmp_path: Path) -> None:
    assert read_requirements(tmp_path / "requirements.txt") == []
