# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for generated servers."""

from __future__ import annotations

from ._asgi import ASGITransportBase, SessionEndpoint
from .base import BaseTransport, ServerFactory
from .stdio import StdioTransport, get_stdio_server
from .streamable_http import SessionRegistry, StreamableHTTPTransport, default_security_settings


__all__ = [
    "ASGITransportBase",
    "BaseTransport",
    "ServerFactory",
    "SessionEndpoint",
    "SessionRegistry",
    "StdioTransport",
    "StreamableHTTPTransport",
    "default_security_settings",
    "get_stdio_server",
]
