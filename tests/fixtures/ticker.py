# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resources whose updates come from generators."""

import anyio


__all__ = ["latest_tick", "counter"]

_TICKS = [0]


def latest_tick() -> str:
    """Most recent tick.

    @uri ticks://latest
    """
    return str(_TICKS[-1])


async def _ticks():
    for _ in range(3):
        await anyio.sleep(0.01)
        _TICKS.append(_TICKS[-1] + 1)
        yield _TICKS[-1]


latest_tick.subscribe = _ticks


def counter(name: str) -> str:
    """A named counter.

    @uri counters://{name}
    """
    return name


def _count_forever():
    while True:
        yield 1


counter.subscribe = _count_forever


def not_exported() -> str:
    """Left out of __all__, so never served."""
    return "hidden"
