"""Core functionality for Transgate."""

from transgate.core.types import GatewayConfig, UpstreamProvider, UpstreamSettings
from transgate.core.translation import (
    Dispatcher,
    Registry,
    RequestContext,
    TranslationError,
    TranslationRequest,
    TranslationResponse,
    build_registry,
    create_dispatcher,
)

__all__ = [
    "Dispatcher",
    "GatewayConfig",
    "Registry",
    "RequestContext",
    "TranslationError",
    "TranslationRequest",
    "TranslationResponse",
    "UpstreamProvider",
    "UpstreamSettings",
    "build_registry",
    "create_dispatcher",
]
