# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Command-line entry point shared by every generated server.

The transport is chosen once at start-up: a non-zero ``--port`` (or
``MCP_PORT``) selects Streamable HTTP, anything else selects stdio.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
import functools
import os
from typing import Final

import anyio

from .transports import StdioTransport, StreamableHTTPTransport
from .transports.base import ServerFactory
from ..utils import get_logger, setup_logger


ENV_PORT: Final[str] = "MCP_PORT"
ENV_HOST: Final[str] = "MCP_HOST"
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PATH: Final[str] = "/mcp"


@dataclass(slots=True)
class RunOptions:
    port: int | None = None
    host: str = DEFAULT_HOST
    log_level: str | None = None

    @property
    def transport(self) -> str:
        return "streamable-http" if self.port else "stdio"


def build_parser(name: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=name, description=f"Run the {name} MCP server.")
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Serve Streamable HTTP on this port (env: {ENV_PORT}). Omit or pass 0 for stdio.",
    )
    parser.add_argument("--host", default=None, help=f"Interface to bind for HTTP (env: {ENV_HOST}).")
    parser.add_argument("--log-level", default=None, help="Log level, e.g. DEBUG or INFO.")
    return parser


def parse_options(name: str, argv: Sequence[str] | None = None) -> RunOptions:
    parser = build_parser(name)
    args = parser.parse_args(argv)

    port = args.port
    if port is None:
        raw = os.getenv(ENV_PORT, "").strip()
        if raw:
            try:
                port = int(raw)
            except ValueError:
                parser.error(f"{ENV_PORT} must be an integer, got {raw!r}")
    if port is not None and port < 0:
        parser.error("port must not be negative")

    host = args.host or os.getenv(ENV_HOST) or DEFAULT_HOST
    return RunOptions(port=port or None, host=host, log_level=args.log_level)


async def serve(server_factory: ServerFactory, options: RunOptions) -> None:
    if options.port:
        transport = StreamableHTTPTransport(server_factory)
        await transport.run(
            host=options.host,
            port=options.port,
            path=DEFAULT_PATH,
            log_level=(options.log_level or "info").lower(),
        )
    else:
        await StdioTransport(server_factory).run()


def main(server_factory: ServerFactory, *, name: str, argv: Sequence[str] | None = None) -> None:
    """Parse the command line and serve until interrupted."""
    options = parse_options(name, argv)
    if options.log_level:
        setup_logger(level=options.log_level, force=True)
    logger = get_logger(f"docmcp.runner.{name}")
    logger.debug("Starting %s over %s", name, options.transport)

    try:
        anyio.run(functools.partial(serve, server_factory, options))
    except KeyboardInterrupt:
        logger.info("Shutting down %s", name)


__all__ = ["RunOptions", "build_parser", "parse_options", "serve", "main"]
