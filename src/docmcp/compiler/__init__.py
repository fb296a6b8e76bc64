# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Protocol compiler: IR in, runtime bindings or generated source out."""

from __future__ import annotations

from .generator import GeneratedArtifacts, GeneratorOptions, generate_server
from .lowering import bind_prompts, bind_resources, bind_tools, compile_server, tool_schemas
from .render import render_manifest, render_server_module, render_tools_module


__all__ = [
    "GeneratedArtifacts",
    "GeneratorOptions",
    "generate_server",
    "bind_tools",
    "bind_prompts",
    "bind_resources",
    "compile_server",
    "tool_schemas",
    "render_server_module",
    "render_tools_module",
    "render_manifest",
]
