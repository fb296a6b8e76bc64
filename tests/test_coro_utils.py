# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tests for the helpers that call user code of either colour."""

from __future__ import annotations

import threading

import anyio
import pytest

from docmcp.utils import call_blocking_or_await, iterate_updates, maybe_await, maybe_await_with_args


@pytest.mark.anyio
async def test_maybe_await_with_sync_callable() -> None:
    assert await maybe_await(lambda: 42) == 42


@pytest.mark.anyio
async def test_maybe_await_with_async_callable() -> None:
    async def async_fn() -> int:
        await anyio.sleep(0)
        return 42

    assert await maybe_await(async_fn) == 42


@pytest.mark.anyio
async def test_maybe_await_with_direct_value_and_coroutine() -> None:
    async def async_fn() -> int:
        return 42

    assert await maybe_await(42) == 42
    assert await maybe_await(async_fn()) == 42


@pytest.mark.anyio
async def test_maybe_await_with_args() -> None:
    def compute(a: int, b: int = 10) -> int:
        return a * b

    async def compute_async(a: int, b: int = 10) -> int:
        await anyio.sleep(0)
        return a * b

    assert await maybe_await_with_args(compute, 3, b=5) == 15
    assert await maybe_await_with_args(compute_async, a=3, b=5) == 15
    assert await maybe_await_with_args(42, "ignored") == 42


@pytest.mark.anyio
async def test_call_blocking_runs_sync_code_off_loop() -> None:
    loop_thread = threading.get_ident()

    def blocking() -> int:
        return threading.get_ident()

    async def non_blocking() -> int:
        return threading.get_ident()

    assert await call_blocking_or_await(blocking) != loop_thread
    assert await call_blocking_or_await(non_blocking) == loop_thread


@pytest.mark.anyio
async def test_iterate_updates_async_source() -> None:
    async def source():
        for value in range(3):
            yield value

    assert [value async for value in iterate_updates(source())] == [0, 1, 2]


@pytest.mark.anyio
async def test_iterate_updates_sync_source_closes_generator() -> None:
    closed: list[bool] = []

    def source():
        try:
            yield from range(10)
        finally:
            closed.append(True)

    collected = []
    updates = iterate_updates(source())
    async for value in updates:
        collected.append(value)
        if value == 2:
            break
    await updates.aclose()

    assert collected == [0, 1, 2]
    assert closed == [True]


@pytest.mark.anyio
async def test_iterate_updates_plain_iterable() -> None:
    assert [value async for value in iterate_updates(["a", "b"])] == ["a", "b"]
