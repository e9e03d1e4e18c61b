"""Translation interface definitions."""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from transgate.core.translation.context import RequestContext


class ErrorKind(str, Enum):
    """Discriminant used by callers to map a failure to a user-facing status."""

    VALIDATION = "validation"
    UNSUPPORTED_MODEL = "unsupported_model"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    UPSTREAM = "upstream"
    UNAVAILABLE = "unavailable"


class UpstreamFailure(str, Enum):
    """Why a single upstream attempt failed."""

    NETWORK = "network"
    STATUS = "status"
    MALFORMED = "malformed"
    EMPTY = "empty"
    SEMANTIC = "semantic"


class TranslationError(Exception):
    """Base class for translation-related errors."""

    kind: ErrorKind = ErrorKind.UNAVAILABLE
    http_status: int = 503

    @property
    def public_message(self) -> str:
        """Message that is safe to show to the end user."""
        return "Translation service temporarily unavailable"


class ValidationError(TranslationError):
    """Input was rejected before any provider was called."""

    kind = ErrorKind.VALIDATION
    http_status = 400

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    @property
    def public_message(self) -> str:
        return f"Invalid input: {self.reason}"


class UnsupportedModelError(TranslationError):
    """No provider is registered for the requested model."""

    kind = ErrorKind.UNSUPPORTED_MODEL
    http_status = 400

    def __init__(self, model: str) -> None:
        super().__init__(f"unsupported model: {model}")
        self.model = model

    @property
    def public_message(self) -> str:
        return "Selected translation model is not supported"


class RequestAbortedError(TranslationError):
    """The request context was cancelled or ran out of time."""


class TranslationCancelledError(RequestAbortedError):
    """The caller cancelled the request."""

    kind = ErrorKind.CANCELLED
    http_status = 400

    def __init__(self, message: str = "translation request was canceled") -> None:
        super().__init__(message)

    @property
    def public_message(self) -> str:
        return "Translation request was canceled"


class TranslationTimeoutError(RequestAbortedError):
    """The request deadline elapsed."""

    kind = ErrorKind.TIMEOUT
    http_status = 408

    def __init__(self, message: str = "translation request timed out") -> None:
        super().__init__(message)

    @property
    def public_message(self) -> str:
        return "Translation request timed out. Please try again."


class UpstreamError(TranslationError):
    """A single provider attempt failed; always eligible for retry."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        reason: UpstreamFailure = UpstreamFailure.NETWORK,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class RetriesExhaustedError(TranslationError):
    """Every attempt for a request failed."""

    kind = ErrorKind.UNAVAILABLE

    def __init__(self, model: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"failed to translate with {model} after {attempts} attempts: {last_error}"
        )
        self.model = model
        self.attempts = attempts
        self.last_error = last_error


def classify_error(error: BaseException) -> ErrorKind:
    """Return the error kind, treating foreign exceptions as unavailability."""
    if isinstance(error, TranslationError):
        return error.kind
    return ErrorKind.UNAVAILABLE


def error_payload(error: BaseException) -> Dict[str, Any]:
    """Build the structured error body used by JSON front-ends.

    Args:
        error: The exception returned by the dispatcher

    Returns:
        A dict with ``error``, ``kind``, ``message`` and ``details`` keys
    """
    if isinstance(error, TranslationError):
        message = error.public_message
    else:
        message = TranslationError().public_message
    return {
        "error": True,
        "kind": classify_error(error).value,
        "message": message,
        "details": str(error),
    }


def http_status_for(error: BaseException) -> int:
    """Return the HTTP status a transport layer should answer with."""
    if isinstance(error, TranslationError):
        return error.http_status
    return TranslationError.http_status


class TranslationRequest(BaseModel):
    """A piece of text and the model that should translate it."""

    text: str
    model: str

    model_config = ConfigDict(frozen=True, protected_namespaces=())


class TranslationResponse(BaseModel):
    """Result of a successful translation."""

    original: str
    translation: str
    model: str

    model_config = ConfigDict(frozen=True, protected_namespaces=())


class Provider(Protocol):
    """Protocol for translation providers."""

    @property
    def name(self) -> str:
        """Display name of the provider."""
        ...

    def supports_model(self, model: str) -> bool:
        """Return True if the provider can serve the given model identifier."""
        ...

    async def translate(
        self,
        request: TranslationRequest,
        ctx: "RequestContext",
    ) -> TranslationResponse:
        """Perform exactly one translation attempt.

        Args:
            request: The validated translation request
            ctx: Cancellation and deadline signal for this request

        Returns:
            A single translation response

        Raises:
            RequestAbortedError: If the context is cancelled or expires
            UpstreamError: If the attempt fails
        """
        ...
