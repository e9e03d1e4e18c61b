"""Tests for the dispatcher."""

import asyncio
import time
from typing import List, Optional
from unittest.mock import MagicMock, patch

import pytest

from transgate.core.translation import create_dispatcher
from transgate.core.translation.context import RequestContext
from transgate.core.translation.dispatcher import Dispatcher, is_retryable
from transgate.core.translation.interface import (
    ErrorKind,
    RetriesExhaustedError,
    TranslationCancelledError,
    TranslationRequest,
    TranslationResponse,
    TranslationTimeoutError,
    UnsupportedModelError,
    UpstreamError,
    UpstreamFailure,
    ValidationError,
)
from transgate.core.translation.registry import Registry
from transgate.core.translation.stand_in import StandInProvider
from transgate.core.types import GatewayConfig


class ScriptedProvider:
    """Provider double that fails a set number of times before succeeding."""

    def __init__(
        self,
        failures: int = 0,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.failures = failures
        self.error = error or UpstreamError("upstream down", reason=UpstreamFailure.NETWORK)
        self.delay = delay
        self.calls: List[float] = []

    @property
    def name(self) -> str:
        return "Scripted"

    def supports_model(self, model: str) -> bool:
        return model == "scripted"

    async def translate(self, request, ctx):
        self.calls.append(time.monotonic())
        if self.delay:
            await ctx.run(asyncio.sleep(self.delay))
        if len(self.calls) <= self.failures:
            raise self.error
        return TranslationResponse(
            original=request.text,
            translation=f"translated: {request.text}",
            model=request.model,
        )


def make_dispatcher(provider, model: str = "scripted") -> Dispatcher:
    return Dispatcher(Registry({model: provider}))


@pytest.fixture
def request_() -> TranslationRequest:
    return TranslationRequest(text="Hello, world!", model="scripted")


async def test_success_on_first_attempt(request_):
    """Test that a healthy provider is called once."""
    provider = ScriptedProvider()
    response = await make_dispatcher(provider).translate(request_, RequestContext())

    assert response.translation == "translated: Hello, world!"
    assert len(provider.calls) == 1


async def test_default_context():
    """Test that a context is optional."""
    provider = ScriptedProvider()
    response = await make_dispatcher(provider).translate(
        TranslationRequest(text="Hello", model="scripted")
    )
    assert response.original == "Hello"


async def test_retries_with_backoff(request_):
    """Test two transient failures followed by success."""
    provider = ScriptedProvider(failures=2)

    response = await make_dispatcher(provider).translate(request_, RequestContext())

    assert response.translation == "translated: Hello, world!"
    assert len(provider.calls) == 3

    first_wait = provider.calls[1] - provider.calls[0]
    second_wait = provider.calls[2] - provider.calls[1]
    assert 0.09 <= first_wait < 0.3
    assert 0.19 <= second_wait < 0.45


async def test_retries_exhausted(request_):
    """Test that a provider failing every time is tried exactly 3 times."""
    provider = ScriptedProvider(failures=10)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await make_dispatcher(provider).translate(request_, RequestContext())

    error = exc_info.value
    assert len(provider.calls) == 3
    assert error.kind == ErrorKind.UNAVAILABLE
    assert error.model == "scripted"
    assert error.attempts == 3
    assert error.last_error is provider.error
    assert error.__cause__ is provider.error
    assert "scripted" in str(error)
    assert error.http_status == 503


async def test_unknown_exceptions_are_transient(request_):
    """Test that provider bugs are retried like upstream failures."""
    provider = ScriptedProvider(failures=10, error=RuntimeError("boom"))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await make_dispatcher(provider, "scripted").translate(request_, RequestContext())

    assert len(provider.calls) == 3
    assert isinstance(exc_info.value.last_error, RuntimeError)


async def test_custom_attempt_budget(request_):
    """Test a dispatcher with a different attempt budget."""
    provider = ScriptedProvider(failures=10)
    dispatcher = Dispatcher(Registry({"scripted": provider}), max_attempts=5, backoff=0)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await dispatcher.translate(request_, RequestContext())

    assert len(provider.calls) == 5
    assert exc_info.value.attempts == 5


@pytest.mark.parametrize("max_attempts,backoff", [(0, 0.1), (3, -1)])
def test_invalid_settings(max_attempts: int, backoff: float):
    """Test that nonsensical retry settings are rejected."""
    with pytest.raises(ValueError):
        Dispatcher(Registry({}), max_attempts=max_attempts, backoff=backoff)


async def test_validation_error_from_provider_not_retried(request_):
    """Test that a provider-side validation error stops the loop."""
    provider = ScriptedProvider(failures=10, error=ValidationError("bad text"))

    with pytest.raises(ValidationError, match="bad text"):
        await make_dispatcher(provider).translate(request_, RequestContext())

    assert len(provider.calls) == 1


async def test_empty_text_short_circuits():
    """Test that invalid text never reaches the provider."""
    provider = ScriptedProvider()

    with pytest.raises(ValidationError) as exc_info:
        await make_dispatcher(provider).translate(
            TranslationRequest(text="", model="scripted"), RequestContext()
        )

    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert provider.calls == []


async def test_unknown_model_short_circuits():
    """Test that an unknown model never reaches a provider."""
    provider = ScriptedProvider()

    with pytest.raises(ValidationError, match="Unsupported model"):
        await make_dispatcher(provider).translate(
            TranslationRequest(text="Hello", model="unknown-model"), RequestContext()
        )

    assert provider.calls == []


async def test_registry_and_supported_set_out_of_sync():
    """Test the second line of defence when validation and lookup disagree."""
    registry = MagicMock(spec=Registry)
    registry.supported_models.return_value = frozenset({"ghost"})
    registry.resolve.side_effect = UnsupportedModelError("ghost")

    with pytest.raises(UnsupportedModelError) as exc_info:
        await Dispatcher(registry).translate(
            TranslationRequest(text="Hello", model="ghost"), RequestContext()
        )

    assert exc_info.value.kind == ErrorKind.UNSUPPORTED_MODEL


async def test_cancelled_before_first_attempt(request_):
    """Test that a cancelled context means no provider call."""
    provider = ScriptedProvider()
    ctx = RequestContext()
    ctx.cancel()

    with pytest.raises(TranslationCancelledError) as exc_info:
        await make_dispatcher(provider).translate(request_, ctx)

    assert exc_info.value.kind == ErrorKind.CANCELLED
    assert provider.calls == []


async def test_expired_before_first_attempt(request_):
    """Test that an expired deadline means no provider call."""
    provider = ScriptedProvider()

    with pytest.raises(TranslationTimeoutError) as exc_info:
        await make_dispatcher(provider).translate(request_, RequestContext(timeout=0))

    assert exc_info.value.kind == ErrorKind.TIMEOUT
    assert exc_info.value.http_status == 408
    assert provider.calls == []


async def test_deadline_during_backoff(request_):
    """Test that the backoff wait ends at the deadline with a timeout error."""
    provider = ScriptedProvider(failures=10)

    start = time.monotonic()
    with pytest.raises(TranslationTimeoutError):
        await make_dispatcher(provider).translate(request_, RequestContext(timeout=0.15))

    # First wait (0.1s) fits, second (0.2s) does not
    assert len(provider.calls) == 2
    assert time.monotonic() - start < 0.5


async def test_cancel_during_backoff(request_):
    """Test that cancelling during the backoff wait stops retrying."""
    provider = ScriptedProvider(failures=10)
    ctx = RequestContext()
    asyncio.get_running_loop().call_later(0.05, ctx.cancel)

    with pytest.raises(TranslationCancelledError):
        await make_dispatcher(provider).translate(request_, ctx)

    assert len(provider.calls) == 1


async def test_cancel_during_attempt(request_):
    """Test that cancelling mid-attempt abandons it without retrying."""
    provider = ScriptedProvider(delay=5)
    ctx = RequestContext()
    asyncio.get_running_loop().call_later(0.05, ctx.cancel)

    start = time.monotonic()
    with pytest.raises(TranslationCancelledError):
        await make_dispatcher(provider).translate(request_, ctx)

    assert len(provider.calls) == 1
    assert time.monotonic() - start < 1


async def test_failure_after_context_done_reports_context_error(request_):
    """Test that a transient failure seen after cancellation is not retried."""
    ctx = RequestContext()

    class CancellingProvider(ScriptedProvider):
        async def translate(self, request, ctx_):
            self.calls.append(time.monotonic())
            ctx_.cancel()
            raise UpstreamError("late failure")

    provider = CancellingProvider()
    with pytest.raises(TranslationCancelledError) as exc_info:
        await make_dispatcher(provider).translate(request_, ctx)

    assert len(provider.calls) == 1
    assert isinstance(exc_info.value.__cause__, UpstreamError)


async def test_task_cancellation_propagates(request_):
    """Test that cancelling the surrounding task is not treated as a failure."""
    provider = ScriptedProvider(delay=5)
    task = asyncio.ensure_future(make_dispatcher(provider).translate(request_, RequestContext()))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(provider.calls) == 1


async def test_logs_each_failed_attempt(request_):
    """Test one warning per failed attempt and one summary error."""
    provider = ScriptedProvider(failures=10)

    with patch("transgate.core.translation.dispatcher.logger") as mock_logger:
        with pytest.raises(RetriesExhaustedError):
            await make_dispatcher(provider).translate(request_, RequestContext())

    assert mock_logger.warning.call_count == 3
    attempts = [call.kwargs["attempt"] for call in mock_logger.warning.call_args_list]
    assert attempts == [1, 2, 3]
    assert all(call.kwargs["model"] == "scripted" for call in mock_logger.warning.call_args_list)
    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.kwargs["attempts"] == 3


async def test_no_failure_logs_on_success(request_):
    """Test that a clean success logs no failures."""
    with patch("transgate.core.translation.dispatcher.logger") as mock_logger:
        await make_dispatcher(ScriptedProvider()).translate(request_, RequestContext())

    mock_logger.warning.assert_not_called()
    mock_logger.error.assert_not_called()


def test_is_retryable():
    """Test the retry classification."""
    ctx = RequestContext()
    assert is_retryable(UpstreamError("x"), ctx)
    assert is_retryable(RuntimeError("x"), ctx)
    assert not is_retryable(ValidationError("x"), ctx)
    assert not is_retryable(UnsupportedModelError("x"), ctx)
    assert not is_retryable(TranslationCancelledError(), ctx)
    assert not is_retryable(TranslationTimeoutError(), ctx)
    assert not is_retryable(asyncio.CancelledError(), ctx)

    ctx.cancel()
    assert not is_retryable(UpstreamError("x"), ctx)


@pytest.fixture
def gateway() -> Dispatcher:
    """Dispatcher over the default registry with fast stand-ins."""
    dispatcher = create_dispatcher(GatewayConfig())
    for model in dispatcher.registry:
        provider = dispatcher.registry.resolve(model)
        assert isinstance(provider, StandInProvider)
        provider.latency = 0.01
    return dispatcher


async def test_end_to_end_success(gateway: Dispatcher):
    """Test translating through the default registry."""
    response = await gateway.translate(
        TranslationRequest(text="Hello, world!", model="gpt-3.5"),
        RequestContext(timeout=5),
    )

    assert response.original == "Hello, world!"
    assert response.translation
    assert response.model == "gpt-3.5"
    assert response.model_dump() == {
        "original": "Hello, world!",
        "translation": "[Translated by GPT-3.5] Hello, world!",
        "model": "gpt-3.5",
    }


async def test_end_to_end_empty_text(gateway: Dispatcher):
    """Test that empty text is a validation error."""
    with pytest.raises(ValidationError):
        await gateway.translate(TranslationRequest(text="", model="gpt-3.5"))


async def test_end_to_end_unknown_model(gateway: Dispatcher):
    """Test that an unknown model is rejected."""
    with pytest.raises(ValidationError, match="Unsupported model: unknown-model"):
        await gateway.translate(TranslationRequest(text="Hello", model="unknown-model"))


def test_supported_models_delegate(gateway: Dispatcher):
    """Test the registry passthroughs."""
    assert gateway.supported_models() == gateway.registry.supported_models()
    assert gateway.is_supported("claude")
    assert not gateway.is_supported("Claude")


async def test_concurrent_requests(gateway: Dispatcher):
    """Test that independent requests run concurrently."""
    for model in ("gpt-3.5", "gpt-4", "claude", "llama"):
        gateway.registry.resolve(model).latency = 0.1

    requests = [
        TranslationRequest(text=f"Sentence number {i}", model=model)
        for i in range(5)
        for model in ("gpt-3.5", "gpt-4", "claude", "llama")
    ]

    start = time.monotonic()
    responses = await asyncio.gather(
        *(gateway.translate(request, RequestContext(timeout=5)) for request in requests)
    )
    elapsed = time.monotonic() - start

    assert [r.original for r in responses] == [r.text for r in requests]
    assert [r.model for r in responses] == [r.model for r in requests]
    assert elapsed < 1.0
