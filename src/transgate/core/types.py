"""Core data types for the Transgate translation gateway."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_OPENAI_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_ANTHROPIC_ENDPOINT = "https://api.anthropic.com"


class UpstreamProvider(str, Enum):
    """Upstream LLM vendors the gateway can talk to."""

    OPENAI = "openai"  # GPT-3.5 / GPT-4 families
    ANTHROPIC = "anthropic"  # Claude family
    STAND_IN = "stand-in"  # Local placeholder, no network


class UpstreamSettings(BaseModel):
    """Credentials and endpoint for one upstream vendor."""

    api_key: Optional[str] = Field(
        default=None,
        description="API key; the upstream counts as configured only when set",
    )
    endpoint: str = Field(description="Base URL of the upstream API")

    model_config = ConfigDict(frozen=True)

    @field_validator("api_key")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("endpoint")
    @classmethod
    def _endpoint_is_url(cls, value: str) -> str:
        if value and not value.startswith("http"):
            raise ValueError("endpoint must be a valid URL")
        return value.rstrip("/")

    @model_validator(mode="after")
    def _key_needs_endpoint(self) -> "UpstreamSettings":
        if self.api_key and not self.endpoint:
            raise ValueError("endpoint must be provided when api_key is set")
        return self

    @property
    def is_configured(self) -> bool:
        """Whether a real upstream should be wired for this vendor."""
        return bool(self.api_key)


class GatewayConfig(BaseModel):
    """Configuration consumed when the provider registry is built."""

    openai: UpstreamSettings = Field(
        default_factory=lambda: UpstreamSettings(endpoint=DEFAULT_OPENAI_ENDPOINT),
    )
    anthropic: UpstreamSettings = Field(
        default_factory=lambda: UpstreamSettings(endpoint=DEFAULT_ANTHROPIC_ENDPOINT),
    )
    timeout: int = Field(
        default=30,
        gt=0,
        le=300,
        description="Per-request deadline in seconds",
    )
    debug: bool = Field(
        default=False,
        description="Whether to log at debug level",
    )

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_values(
        cls,
        openai_api_key: Optional[str] = None,
        openai_endpoint: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        anthropic_endpoint: Optional[str] = None,
        timeout: int = 30,
        debug: bool = False,
    ) -> "GatewayConfig":
        """Build a config from flat values, falling back to default endpoints.

        Raises:
            pydantic.ValidationError: If any value is invalid
        """
        return cls(
            openai=UpstreamSettings(
                api_key=openai_api_key,
                endpoint=openai_endpoint or DEFAULT_OPENAI_ENDPOINT,
            ),
            anthropic=UpstreamSettings(
                api_key=anthropic_api_key,
                endpoint=anthropic_endpoint or DEFAULT_ANTHROPIC_ENDPOINT,
            ),
            timeout=timeout,
            debug=debug,
        )
