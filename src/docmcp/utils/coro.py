# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Helpers for calling user code that may or may not be asynchronous."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
import functools
import inspect
from typing import Any

import anyio.to_thread


_EXHAUSTED = object()


async def maybe_await(value: Any) -> Any:
    """Resolve *value*: call it if callable, await it if awaitable."""
    if callable(value):
        value = value()
    if inspect.isawaitable(value):
        return await value
    return value


async def maybe_await_with_args(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* with the arguments and await the result when needed.

    Awaitables and plain values are resolved as they are; the arguments only
    apply to callables.
    """
    if inspect.isawaitable(target):
        return await target
    if not callable(target):
        return target
    result = target(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def call_blocking_or_await(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Await coroutine functions; run plain callables on a worker thread.

    Poll-style hooks are allowed to block, so synchronous ones must not run
    on the event loop.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)
    result = await anyio.to_thread.run_sync(functools.partial(fn, *args, **kwargs))
    if inspect.isawaitable(result):
        return await result
    return result


async def iterate_updates(source: Any) -> AsyncIterator[Any]:
    """Iterate an async or sync iterator without blocking the event loop.

    Synchronous iterators advance on a worker thread.  The source is closed
    when iteration stops for any reason.
    """
    if hasattr(source, "__aiter__"):
        iterator = source.__aiter__()
        try:
            async for item in iterator:
                yield item
        finally:
            closer = getattr(iterator, "aclose", None)
            if closer is not None:
                await closer()
        return

    iterator = iter(source)
    try:
        while True:
            item = await anyio.to_thread.run_sync(next, iterator, _EXHAUSTED)
            if item is _EXHAUSTED:
                return
            yield item
    finally:
        closer = getattr(iterator, "close", None)
        if closer is not None:
            closer()


__all__ = ["maybe_await", "maybe_await_with_args", "call_blocking_or_await", "iterate_updates"]
