"""Dispatch of translation requests to providers, with retries."""

from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from transgate.core.translation.context import RequestContext
from transgate.core.translation.interface import (
    Provider,
    RequestAbortedError,
    RetriesExhaustedError,
    TranslationRequest,
    TranslationResponse,
    UnsupportedModelError,
    ValidationError,
)
from transgate.core.translation.registry import Registry
from transgate.core.translation.validation import validate_model, validate_text
from transgate.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF = 0.1  # seconds; the wait before attempt N+1 is N * backoff


def is_retryable(error: BaseException, ctx: RequestContext) -> bool:
    """Decide whether a failed attempt may be tried again.

    Anything that is not a caller error, a context abort or a task
    cancellation counts as transient.
    """
    if ctx.done:
        return False
    if not isinstance(error, Exception):
        return False
    return not isinstance(
        error, (ValidationError, UnsupportedModelError, RequestAbortedError)
    )


class Dispatcher:
    """Validates requests, picks a provider and retries transient failures.

    A dispatcher holds no mutable state and can serve any number of
    concurrent requests.
    """

    def __init__(
        self,
        registry: Registry,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Registry used to resolve model identifiers
            max_attempts: Total attempts per request, retries included. Defaults to 3.
            backoff: Backoff unit in seconds. Defaults to 0.1.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff < 0:
            raise ValueError("backoff must be non-negative")
        self.registry = registry
        self.max_attempts = max_attempts
        self.backoff = backoff

    def supported_models(self) -> frozenset[str]:
        return self.registry.supported_models()

    def is_supported(self, model: str) -> bool:
        return self.registry.is_supported(model)

    async def _attempt(
        self,
        provider: Provider,
        request: TranslationRequest,
        ctx: RequestContext,
        attempt_number: int,
    ) -> TranslationResponse:
        try:
            return await provider.translate(request, ctx)
        except Exception as e:
            logger.warning(
                "Translation attempt failed",
                attempt=attempt_number,
                model=request.model,
                error=str(e),
            )
            raise

    async def translate(
        self,
        request: TranslationRequest,
        ctx: Optional[RequestContext] = None,
    ) -> TranslationResponse:
        """Translate a request with validation and bounded retries.

        Args:
            request: The translation request
            ctx: Cancellation and deadline signal. Defaults to a context
                without deadline.

        Returns:
            The first successful provider response

        Raises:
            ValidationError: If the text or model is rejected
            UnsupportedModelError: If no provider serves the model
            RequestAbortedError: If the context is cancelled or expires
            RetriesExhaustedError: If every attempt failed
        """
        if ctx is None:
            ctx = RequestContext()

        validate_text(request.text)
        validate_model(request.model, self.registry.supported_models())
        provider = self.registry.resolve(request.model)

        ctx.raise_if_done()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.backoff, increment=self.backoff),
            retry=retry_if_exception(lambda error: is_retryable(error, ctx)),
            sleep=ctx.sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._attempt(
                        provider,
                        request,
                        ctx,
                        attempt.retry_state.attempt_number,
                    )
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(
                "Translation failed after retries",
                model=request.model,
                attempts=self.max_attempts,
                error=str(last_error),
            )
            raise RetriesExhaustedError(
                request.model, self.max_attempts, last_error
            ) from last_error
        except RequestAbortedError:
            raise
        except Exception as e:
            if ctx.done:
                raise ctx.error() from e
            raise

        return response
