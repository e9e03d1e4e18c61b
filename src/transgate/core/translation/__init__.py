"""Translation engine for Transgate."""

from transgate.core.translation.context import RequestContext
from transgate.core.translation.dispatcher import Dispatcher
from transgate.core.translation.interface import (
    ErrorKind,
    Provider,
    RequestAbortedError,
    RetriesExhaustedError,
    TranslationCancelledError,
    TranslationError,
    TranslationRequest,
    TranslationResponse,
    TranslationTimeoutError,
    UnsupportedModelError,
    UpstreamError,
    UpstreamFailure,
    ValidationError,
    classify_error,
    error_payload,
    http_status_for,
)
from transgate.core.translation.litellm import LiteLLMProvider
from transgate.core.translation.registry import Registry, build_registry, display_name
from transgate.core.translation.stand_in import StandInProvider
from transgate.core.translation.validation import validate_model, validate_text
from transgate.core.types import GatewayConfig


def create_dispatcher(config: GatewayConfig) -> Dispatcher:
    """Create a dispatcher based on configuration.

    Args:
        config: Gateway configuration

    Returns:
        Dispatcher over a freshly built registry
    """
    return Dispatcher(build_registry(config))


__all__ = [
    "Dispatcher",
    "ErrorKind",
    "GatewayConfig",
    "LiteLLMProvider",
    "Provider",
    "Registry",
    "RequestAbortedError",
    "RequestContext",
    "RetriesExhaustedError",
    "StandInProvider",
    "TranslationCancelledError",
    "TranslationError",
    "TranslationRequest",
    "TranslationResponse",
    "TranslationTimeoutError",
    "UnsupportedModelError",
    "UpstreamError",
    "UpstreamFailure",
    "ValidationError",
    "build_registry",
    "classify_error",
    "create_dispatcher",
    "display_name",
    "error_payload",
    "http_status_for",
    "validate_model",
    "validate_text",
]
