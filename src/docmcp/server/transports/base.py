# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`docmcp.server`.

Transports receive a server *factory* rather than a server: the HTTP
transport builds one server per session, and stdio builds exactly one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..core import GeneratedServer

ServerFactory = Callable[[], "GeneratedServer"]


class BaseTransport(ABC):
    """Common base for server transports.

    Implementations define :meth:`run`, which accepts keyword arguments
    specific to the transport (host/port for HTTP, ``raise_exceptions`` for
    stdio).
    """

    TRANSPORT: tuple[str, ...] = ()

    def __init__(self, server_factory: ServerFactory) -> None:
        self._server_factory = server_factory

    @property
    def server_factory(self) -> ServerFactory:
        return self._server_factory

    @property
    def transport_display_name(self) -> str:
        return self.TRANSPORT[1] if len(self.TRANSPORT) > 1 else type(self).__name__

    @abstractmethod
    async def run(self, **kwargs: Any) -> None:
        """Serve until the peer disconnects or the process is interrupted."""


__all__ = ["BaseTransport", "ServerFactory"]
