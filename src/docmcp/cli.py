# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""``docmcp`` command line.

    docmcp path/to/module.py [-o DIR] [-n NAME] [--run]

``--run`` generates into a temporary directory, runs the server in the
foreground with the terminal's stdio, and removes the directory afterwards.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
import subprocess
import sys
import tempfile

from .compiler import GeneratorOptions, generate_server
from .parser import GenerationError
from .utils import get_logger, setup_logger


_logger = get_logger("docmcp.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmcp", description="Generate an MCP server from the documented functions of a Python module."
    )
    parser.add_argument("entry", type=Path, help="Python module whose exported functions become tools")
    parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Output directory (default: ./<module>-mcp-server)"
    )
    parser.add_argument("-n", "--name", default=None, help="Server name (default: derived from the module name)")
    parser.add_argument("--run", action="store_true", help="Generate into a temporary directory and run the server")
    parser.add_argument("--log-level", default=None, help="Log level, e.g. DEBUG or INFO")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        setup_logger(level=args.log_level, force=True)

    if args.run:
        return _generate_and_run(args.entry, args.name)

    output = args.output or Path.cwd() / f"{args.entry.stem.replace('_', '-')}-mcp-server"
    try:
        generate_server(GeneratorOptions(entry_path=args.entry, output_dir=output, server_name=args.name))
    except GenerationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def _generate_and_run(entry: Path, name: str | None) -> int:
    with tempfile.TemporaryDirectory(prefix="docmcp-") as workdir:
        try:
            artifacts = generate_server(GeneratorOptions(entry_path=entry, output_dir=Path(workdir), server_name=name))
        except GenerationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

        _logger.info("Starting %s", artifacts.server_module)
        try:
            completed = subprocess.run([sys.executable, str(artifacts.server_module)], cwd=workdir, check=False)
        except KeyboardInterrupt:
            return 130
        return completed.returncode


__all__ = ["build_parser", "main"]
