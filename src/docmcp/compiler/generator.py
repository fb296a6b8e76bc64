# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Run the whole pipeline and write a server directory.

Output layout::

    <output_dir>/
        <source>.py       copy of the input module
        tools.py          re-exports the served functions
        server.py         the generated server (``get_server``, ``main``)
        pyproject.toml    manifest with a console script
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import re
import shutil
from typing import Final

from .render import render_manifest, render_server_module, render_tools_module
from ..ir import ModuleIR
from ..parser import GenerationError, parse_file
from ..utils import get_logger


RESERVED_MODULES: Final[frozenset[str]] = frozenset({"server", "tools"})
REQUIREMENTS_FILE: Final[str] = "requirements.txt"

_logger = get_logger("docmcp.generator")


@dataclass(slots=True)
class GeneratorOptions:
    """Inputs of one generation run.

    ``server_name`` defaults to the source module's stem with underscores
    turned into hyphens.
    """

    entry_path: Path
    output_dir: Path
    server_name: str | None = None
    version: str = "1.0.0"

    def __post_init__(self) -> None:
        self.entry_path = Path(self.entry_path)
        self.output_dir = Path(self.output_dir)


@dataclass(slots=True)
class GeneratedArtifacts:
    output_dir: Path
    server_module: Path
    tools_module: Path
    source_copy: Path
    manifest: Path
    ir: ModuleIR
    dependencies: list[str] = field(default_factory=list)


def generate_server(options: GeneratorOptions) -> GeneratedArtifacts:
    """Parse the entry module and write the server artifacts.

    Raises:
        GenerationError: The module cannot be served.  Nothing has been written
            to ``output_dir`` in that case.
    """
    entry = options.entry_path.resolve()
    stem = entry.stem
    if stem in RESERVED_MODULES:
        raise GenerationError(f"Source module may not be named {entry.name!r}; that name is used by the output")
    if not stem.isidentifier():
        raise GenerationError(f"Source module name {stem!r} is not a valid Python identifier")

    ir = parse_file(entry)
    if ir.is_empty:
        raise GenerationError(
            f"No exported functions with docstrings found in {entry}. "
            "Document each function you want to expose; the description becomes the tool description."
        )
    _log_summary(ir)

    server_name = options.server_name or stem.replace("_", "-")
    dependencies = read_requirements(entry.parent / REQUIREMENTS_FILE)

    output_dir = options.output_dir.resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    source_copy = output_dir / entry.name
    if source_copy != entry:
        shutil.copyfile(entry, source_copy)

    tools_module = output_dir / "tools.py"
    tools_module.write_text(render_tools_module(ir, stem), encoding="utf-8")

    server_module = output_dir / "server.py"
    server_module.write_text(
        render_server_module(ir, server_name=server_name, version=options.version), encoding="utf-8"
    )

    manifest = output_dir / "pyproject.toml"
    manifest.write_text(
        render_manifest(server_name, ["server", "tools", stem], dependencies, version=options.version),
        encoding="utf-8",
    )

    _logger.info("Generated MCP server in %s", output_dir)
    return GeneratedArtifacts(
        output_dir=output_dir,
        server_module=server_module,
        tools_module=tools_module,
        source_copy=source_copy,
        manifest=manifest,
        ir=ir,
        dependencies=dependencies,
    )


def read_requirements(path: Path) -> list[str]:
    """Return the requirement lines of *path*, or nothing if it does not exist."""
    if not path.is_file():
        return []
    requirements = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = re.sub(r"\s+#.*$", "", raw).strip()
        if line and not line.startswith(("#", "-")):
            requirements.append(line)
    return requirements


def _log_summary(ir: ModuleIR) -> None:
    for label, names in (
        ("tool", [tool.name for tool in ir.tools]),
        ("prompt", [prompt.name for prompt in ir.prompts]),
        ("resource", [resource.name for resource in ir.resources]),
    ):
        if names:
            _logger.info("Found %d %s(s): %s", len(names), label, ", ".join(names))


__all__ = ["GeneratorOptions", "GeneratedArtifacts", "generate_server", "read_requirements", "RESERVED_MODULES"]
