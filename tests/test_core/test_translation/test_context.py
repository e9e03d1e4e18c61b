"""Tests for the request context."""

import asyncio
import time

import pytest

from transgate.core.translation.context import RequestContext
from transgate.core.translation.interface import (
    ErrorKind,
    TranslationCancelledError,
    TranslationTimeoutError,
)


def test_fresh_context_is_live():
    """Test a context without deadline."""
    ctx = RequestContext()
    assert not ctx.done
    assert ctx.remaining() is None
    ctx.raise_if_done()
    with pytest.raises(RuntimeError):
        ctx.error()


def test_cancel():
    """Test that cancelling marks the context done with a cancellation error."""
    ctx = RequestContext(timeout=10)
    ctx.cancel()
    ctx.cancel()  # idempotent
    assert ctx.cancelled
    assert ctx.done
    assert isinstance(ctx.error(), TranslationCancelledError)
    assert ctx.error().kind == ErrorKind.CANCELLED


def test_zero_timeout_is_expired():
    """Test that a zero timeout is already past its deadline."""
    ctx = RequestContext(timeout=0)
    assert ctx.expired
    assert ctx.remaining() == 0.0
    with pytest.raises(TranslationTimeoutError):
        ctx.raise_if_done()


async def test_sleep_completes():
    """Test an uninterrupted sleep."""
    ctx = RequestContext(timeout=5)
    start = time.monotonic()
    await ctx.sleep(0.05)
    assert time.monotonic() - start >= 0.04
    assert not ctx.done


async def test_sleep_interrupted_by_cancel():
    """Test that cancelling wakes a sleeper immediately."""
    ctx = RequestContext()
    asyncio.get_running_loop().call_later(0.05, ctx.cancel)

    start = time.monotonic()
    with pytest.raises(TranslationCancelledError):
        await ctx.sleep(5)
    assert time.monotonic() - start < 1


async def test_sleep_cut_short_by_deadline():
    """Test that a sleep past the deadline ends at the deadline."""
    ctx = RequestContext(timeout=0.05)

    start = time.monotonic()
    with pytest.raises(TranslationTimeoutError):
        await ctx.sleep(5)
    assert time.monotonic() - start < 1
    assert ctx.expired


async def test_run_returns_result():
    """Test that run passes the awaited result through."""
    ctx = RequestContext(timeout=5)

    async def work():
        await asyncio.sleep(0.01)
        return "done"

    assert await ctx.run(work()) == "done"


async def test_run_propagates_exception():
    """Test that run re-raises the awaited exception."""
    ctx = RequestContext()

    async def work():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await ctx.run(work())


async def test_run_abandons_work_on_cancel():
    """Test that cancelling abandons the in-flight operation."""
    ctx = RequestContext()
    finished = False

    async def work():
        nonlocal finished
        await asyncio.sleep(5)
        finished = True

    asyncio.get_running_loop().call_later(0.05, ctx.cancel)
    with pytest.raises(TranslationCancelledError):
        await ctx.run(work())
    assert not finished


async def test_run_abandons_work_on_deadline():
    """Test that the deadline abandons the in-flight operation."""
    ctx = RequestContext(timeout=0.05)

    start = time.monotonic()
    with pytest.raises(TranslationTimeoutError):
        await ctx.run(asyncio.sleep(5))
    assert time.monotonic() - start < 1


async def test_run_on_done_context_does_not_start():
    """Test that nothing runs once the context is done."""
    ctx = RequestContext()
    ctx.cancel()
    started = False

    async def work():
        nonlocal started
        started = True

    with pytest.raises(TranslationCancelledError):
        await ctx.run(work())
    assert not started
