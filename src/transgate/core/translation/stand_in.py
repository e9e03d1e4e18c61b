"""Network-free stand-in provider."""

from transgate.core.translation.context import RequestContext
from transgate.core.translation.interface import (
    Provider,
    TranslationRequest,
    TranslationResponse,
)
from transgate.utils.logging import get_logger

logger = get_logger(__name__)


class StandInProvider(Provider):
    """Provider that fabricates a deterministic placeholder translation.

    Used for model families without a configured upstream, and in tests.
    """

    def __init__(self, name: str, latency: float = 0.5) -> None:
        """Initialize the provider.

        Args:
            name: Display name, also used in the placeholder text
            latency: Simulated upstream delay in seconds. Defaults to 0.5.
        """
        self._name = name
        self.latency = latency

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"StandInProvider(name={self._name!r})"

    def supports_model(self, model: str) -> bool:
        """Match the model case-insensitively against the display name."""
        if not model:
            return False
        name = self._name.lower()
        model = model.lower()
        return model == name or model in name

    def render(self, text: str) -> str:
        return f"[Translated by {self._name}] {text}"

    async def translate(
        self,
        request: TranslationRequest,
        ctx: RequestContext,
    ) -> TranslationResponse:
        """Return the placeholder translation after the simulated delay.

        Raises:
            RequestAbortedError: If the context ends before the delay is over
        """
        if self.latency > 0:
            await ctx.sleep(self.latency)
        else:
            ctx.raise_if_done()

        logger.debug("Stand-in translation", provider=self._name, model=request.model)

        return TranslationResponse(
            original=request.text,
            translation=self.render(request.text),
            model=request.model,
        )
