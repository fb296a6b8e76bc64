# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Runtime support imported by generated server modules."""

from __future__ import annotations

from .bindings import PromptArgumentSpec, PromptBinding, ResourceBinding, ResourceOps, ToolBinding
from .core import GeneratedServer
from .runner import main as run_server
from .subscriptions import SubscriptionManager, SubscriptionState
from .transports import SessionRegistry, StdioTransport, StreamableHTTPTransport


__all__ = [
    "GeneratedServer",
    "ToolBinding",
    "PromptArgumentSpec",
    "PromptBinding",
    "ResourceOps",
    "ResourceBinding",
    "SubscriptionManager",
    "SubscriptionState",
    "SessionRegistry",
    "StdioTransport",
    "StreamableHTTPTransport",
    "run_server",
]
