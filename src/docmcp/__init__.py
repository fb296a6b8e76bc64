# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Turn the documented functions of a Python module into an MCP server."""

from __future__ import annotations

from .annotations import DocAnnotation, parse_docstring
from .compiler import GeneratorOptions, compile_server, generate_server
from .ir import ModuleIR, SubscriptionMode
from .parser import GenerationError, parse_file, parse_module
from .server import GeneratedServer
from .synthesis import synthesize


__version__ = "0.1.0"

__all__ = [
    "DocAnnotation",
    "GeneratedServer",
    "GenerationError",
    "GeneratorOptions",
    "ModuleIR",
    "SubscriptionMode",
    "compile_server",
    "generate_server",
    "parse_docstring",
    "parse_file",
    "parse_module",
    "synthesize",
]
