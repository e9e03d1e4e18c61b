"""LiteLLM-backed upstream provider."""

from typing import Any, Mapping, Optional

import httpx
from litellm import acompletion
from litellm.exceptions import APIConnectionError, BadRequestError, Timeout

from transgate.core.translation.context import RequestContext
from transgate.core.translation.interface import (
    Provider,
    RequestAbortedError,
    TranslationRequest,
    TranslationResponse,
    UpstreamError,
    UpstreamFailure,
)
from transgate.core.types import UpstreamProvider
from transgate.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional English to Chinese translator. "
    "Translate the following English text to Chinese. "
    "Provide only the translation without any explanation."
)


def split_whitespace(text: str) -> tuple[str, str, str]:
    """Split text into (leading whitespace, core, trailing whitespace)."""
    core = text.strip()
    if not core:
        return text, "", ""
    start = text.index(core)
    return text[:start], core, text[start + len(core):]


def _is_transport_failure(error: BaseException) -> bool:
    """Whether the error or anything it was raised from is a transport error.

    Some LiteLLM routes report a refused connection as a generic 500 error
    raised while handling the original httpx exception.
    """
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, (APIConnectionError, Timeout, httpx.TransportError)):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_upstream_exception(error: Exception) -> UpstreamError:
    """Map an exception raised by LiteLLM to an UpstreamError.

    Args:
        error: The exception raised by the completion call

    Returns:
        An UpstreamError carrying the failure reason and status code, if any
    """
    status_code = getattr(error, "status_code", None)
    if _is_transport_failure(error):
        reason = UpstreamFailure.NETWORK
    elif isinstance(error, BadRequestError):
        reason = UpstreamFailure.SEMANTIC
    elif isinstance(status_code, int):
        reason = UpstreamFailure.STATUS
    else:
        reason = UpstreamFailure.NETWORK
    return UpstreamError(
        f"Upstream call failed: {error}",
        reason=reason,
        status_code=status_code if isinstance(status_code, int) else None,
    )


class LiteLLMProvider(Provider):
    """One upstream model family reached through LiteLLM."""

    def __init__(
        self,
        name: str,
        provider: UpstreamProvider,
        models: Mapping[str, str],
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the provider.

        Args:
            name: Display name, e.g. "GPT-4 (OpenAI)"
            provider: Upstream vendor, used as the LiteLLM model prefix
            models: Gateway model identifiers mapped to upstream model names
            api_key: API key for the vendor
            api_base: Base URL of the vendor API
            temperature: Model temperature (randomness). Defaults to 0.3.
            max_tokens: Maximum tokens in response. Defaults to 1000.
            timeout: Per-call HTTP timeout in seconds. Defaults to 30.
        """
        if provider == UpstreamProvider.STAND_IN:
            raise ValueError("LiteLLMProvider needs a network upstream")
        self._name = name
        self.provider = provider
        self.models = dict(models)
        self.api_key = api_key
        self.api_base = api_base
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"LiteLLMProvider(name={self._name!r}, provider={self.provider.value!r})"

    def supports_model(self, model: str) -> bool:
        return model in self.models

    def _get_model_string(self, model: str) -> str:
        """Get the LiteLLM model string for a gateway model identifier.

        Unknown identifiers are passed through as the upstream model name.
        """
        upstream_model = self.models.get(model, model)
        if "/" in upstream_model:
            return upstream_model
        return f"{self.provider.value}/{upstream_model}"

    def _get_api_base(self) -> Optional[str]:
        """Get the base URL handed to LiteLLM.

        LiteLLM appends `/v1/messages` to Anthropic base URLs itself, so a
        configured `/v1` suffix is dropped.
        """
        if self.api_base and self.provider == UpstreamProvider.ANTHROPIC:
            return self.api_base.rstrip("/").removesuffix("/v1")
        return self.api_base

    def _create_messages(self, text: str) -> list[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": text},
        ]

    async def _complete(self, request: TranslationRequest, text: str) -> Any:
        return await acompletion(
            model=self._get_model_string(request.model),
            messages=self._create_messages(text),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            api_key=self.api_key,
            api_base=self._get_api_base(),
            timeout=self.timeout,
            num_retries=0,
            stream=False,
        )

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Pull the translated text out of a completion response.

        Raises:
            UpstreamError: If the payload is malformed, empty or refused
        """
        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamError(
                "API returned no translation choices",
                reason=UpstreamFailure.MALFORMED,
            )

        choice = choices[0]
        if getattr(choice, "finish_reason", None) == "content_filter":
            raise UpstreamError(
                "API refused the content",
                reason=UpstreamFailure.SEMANTIC,
            )

        message = getattr(choice, "message", None)
        if message is None:
            raise UpstreamError(
                "Invalid response format: missing message",
                reason=UpstreamFailure.MALFORMED,
            )

        content = getattr(message, "content", None)
        if content is not None and not isinstance(content, str):
            raise UpstreamError(
                f"Invalid response format: content is {type(content).__name__}",
                reason=UpstreamFailure.MALFORMED,
            )
        if not content or not content.strip():
            raise UpstreamError(
                "API returned empty translation",
                reason=UpstreamFailure.EMPTY,
            )
        return content.strip()

    async def translate(
        self,
        request: TranslationRequest,
        ctx: RequestContext,
    ) -> TranslationResponse:
        """Translate the request text with one upstream call.

        Leading and trailing whitespace of the source is kept around the
        translation.

        Raises:
            RequestAbortedError: If the context is cancelled or expires
            UpstreamError: If the upstream call fails
        """
        prefix, clean_text, suffix = split_whitespace(request.text)

        try:
            logger.debug(
                "Making completion request",
                provider=self._name,
                model=self._get_model_string(request.model),
            )
            response = await ctx.run(self._complete(request, clean_text))
        except RequestAbortedError:
            raise
        except Exception as e:
            error = classify_upstream_exception(e)
            logger.debug(
                "Completion request failed",
                provider=self._name,
                reason=error.reason.value,
                status_code=error.status_code,
            )
            raise error from e

        text = self._extract_text(response)

        return TranslationResponse(
            original=request.text,
            translation=prefix + text + suffix,
            model=request.model,
        )
