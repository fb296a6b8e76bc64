# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport adapter built on the reference MCP SDK.

Delegates framing of newline-delimited JSON-RPC traffic over ``stdin`` and
``stdout`` to the SDK's ``stdio_server`` helper.
"""

from __future__ import annotations

from mcp.server.stdio import stdio_server

from .base import BaseTransport
from ...utils import get_logger


_logger = get_logger("docmcp.transports.stdio")


def get_stdio_server():
    """Return the SDK's stdio context manager.

    Separated into a helper so tests can patch it with in-memory transports.
    """
    return stdio_server


class StdioTransport(BaseTransport):
    """Run a single server session over STDIO."""

    TRANSPORT = ("stdio", "STDIO", "Standard IO")

    async def run(self, *, raise_exceptions: bool = False) -> None:
        server = self.server_factory()
        stdio_ctx = get_stdio_server()
        init_options = server.create_initialization_options()

        _logger.info("Serving %s via STDIO", server.name)
        async with stdio_ctx() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, init_options, raise_exceptions=raise_exceptions)


__all__ = ["StdioTransport", "get_stdio_server"]
