"""Model registry: which provider serves which model identifier."""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from transgate.core.translation.interface import Provider, UnsupportedModelError
from transgate.core.translation.litellm import LiteLLMProvider
from transgate.core.translation.stand_in import StandInProvider
from transgate.core.types import GatewayConfig, UpstreamProvider, UpstreamSettings
from transgate.utils.logging import get_logger

logger = get_logger(__name__)

# Gateway identifier -> upstream model name, per model family
FAST_MODELS: Dict[str, str] = {
    "gpt-3.5": "gpt-3.5-turbo",
    "gpt-3.5-turbo": "gpt-3.5-turbo",
}
PREMIUM_MODELS: Dict[str, str] = {
    "gpt-4": "gpt-4",
    "gpt-4-turbo": "gpt-4-turbo",
    "gpt-4o": "gpt-4o",
}
CLAUDE_MODELS: Dict[str, str] = {
    "claude": "claude-3-haiku-20240307",
    "claude-3-opus": "claude-3-opus-20240229",
    "claude-3-sonnet": "claude-3-sonnet-20240229",
    "claude-3-haiku": "claude-3-haiku-20240307",
    "claude-3-opus-20240229": "claude-3-opus-20240229",
    "claude-3-sonnet-20240229": "claude-3-sonnet-20240229",
    "claude-3-haiku-20240307": "claude-3-haiku-20240307",
}
OPEN_MODELS: Tuple[str, ...] = ("llama",)

MODEL_DISPLAY_NAMES: Dict[str, str] = {
    "gpt-3.5-turbo": "GPT-3.5 Turbo",
    "gpt-3.5": "GPT-3.5",
    "gpt-4": "GPT-4",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-4o": "GPT-4o",
    "claude-3-opus": "Claude 3 Opus",
    "claude-3-sonnet": "Claude 3 Sonnet",
    "claude-3-haiku": "Claude 3 Haiku",
    "claude-3-opus-20240229": "Claude 3 Opus (2024-02-29)",
    "claude-3-sonnet-20240229": "Claude 3 Sonnet (2024-02-29)",
    "claude-3-haiku-20240307": "Claude 3 Haiku (2024-03-07)",
    "claude": "Claude",
    "llama": "Llama 2 (Stand-in)",
}


def display_name(model: str) -> str:
    """Return a user-friendly name for a model identifier."""
    return MODEL_DISPLAY_NAMES.get(model, model)


class Registry:
    """Immutable mapping from model identifier to provider.

    Lookups are exact and case-sensitive. Several identifiers may share one
    provider instance.
    """

    def __init__(self, providers: Mapping[str, Provider]) -> None:
        self._providers: Mapping[str, Provider] = MappingProxyType(dict(providers))
        self._supported = frozenset(self._providers)

    def __contains__(self, model: object) -> bool:
        return model in self._providers

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._providers))

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        return f"Registry(models={sorted(self._providers)!r})"

    def get(self, model: str) -> Optional[Provider]:
        return self._providers.get(model)

    def resolve(self, model: str) -> Provider:
        """Return the provider registered for ``model``.

        Raises:
            UnsupportedModelError: If no provider is registered
        """
        provider = self._providers.get(model)
        if provider is None:
            raise UnsupportedModelError(model)
        return provider

    def find(self, model: str) -> Optional[Provider]:
        """Resolve exactly, then fall back to asking each provider.

        The fallback goes through ``Provider.supports_model`` in sorted
        identifier order and returns the first provider that accepts.
        """
        provider = self._providers.get(model)
        if provider is not None:
            return provider
        for key in sorted(self._providers):
            candidate = self._providers[key]
            if candidate.supports_model(model):
                return candidate
        return None

    def supported_models(self) -> frozenset[str]:
        return self._supported

    def is_supported(self, model: str) -> bool:
        return model in self._providers

    def providers(self) -> Mapping[str, Provider]:
        """Read-only view of the identifier to provider mapping."""
        return self._providers


def _family_provider(
    stand_in_name: str,
    upstream_name: str,
    provider: UpstreamProvider,
    models: Mapping[str, str],
    settings: UpstreamSettings,
    timeout: float,
    latency: float,
) -> Provider:
    if settings.is_configured:
        return LiteLLMProvider(
            name=upstream_name,
            provider=provider,
            models=models,
            api_key=settings.api_key,
            api_base=settings.endpoint,
            timeout=timeout,
        )
    return StandInProvider(stand_in_name, latency=latency)


def build_registry(config: GatewayConfig, stand_in_latency: float = 0.5) -> Registry:
    """Build the registry for a gateway configuration.

    Each model family gets a real LiteLLM provider when its upstream has an
    API key, and a stand-in provider otherwise. The open tier is always a
    stand-in.

    Args:
        config: Gateway configuration
        stand_in_latency: Simulated delay for stand-in providers, in seconds

    Returns:
        The populated registry
    """
    fast = _family_provider(
        "GPT-3.5",
        "GPT-3.5 (OpenAI)",
        UpstreamProvider.OPENAI,
        FAST_MODELS,
        config.openai,
        config.timeout,
        stand_in_latency,
    )
    premium = _family_provider(
        "GPT-4",
        "GPT-4 (OpenAI)",
        UpstreamProvider.OPENAI,
        PREMIUM_MODELS,
        config.openai,
        config.timeout,
        stand_in_latency,
    )
    claude = _family_provider(
        "Claude",
        "Claude (Anthropic)",
        UpstreamProvider.ANTHROPIC,
        CLAUDE_MODELS,
        config.anthropic,
        config.timeout,
        stand_in_latency,
    )
    llama = StandInProvider("Llama", latency=stand_in_latency)

    providers: Dict[str, Provider] = {}
    for family, models in (
        (fast, FAST_MODELS),
        (premium, PREMIUM_MODELS),
        (claude, CLAUDE_MODELS),
        (llama, OPEN_MODELS),
    ):
        for model in models:
            providers[model] = family

    registry = Registry(providers)
    logger.info(
        "Registry built",
        models=len(registry),
        openai="upstream" if config.openai.is_configured else "stand-in",
        anthropic="upstream" if config.anthropic.is_configured else "stand-in",
    )
    return registry
