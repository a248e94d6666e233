"""
Agent configuration.

Uses Pydantic for validation. Settings are frozen (immutable) after
construction; init() calls build a new AgentSettings by shallow-merging the
new options over the previous ones.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_NAMESPACE = "pharaon"
MAX_EVENT_NAME_LENGTH = 256
MAX_EVENT_PARAMS_BYTES = 65_536  # 64 KB
MAX_IDENTIFIER_BYTES = 2_048
PSEUDO_ID_COOKIE_MAX_AGE = 31_536_000  # one year, in seconds


class AgentSettings(BaseModel):
    """Recognized init() options.

    Example:
        agent.init({"debug": True, "sink": "http", "endpoint": "https://collect.example.com/v1"})
    """

    model_config = {"frozen": True, "extra": "forbid"}

    debug: bool = Field(default=False, description="Log every record and configuration change verbosely")
    endpoint: str | None = Field(default=None, description="Target URL for the network sink")
    sink: str = Field(default="console", min_length=1, description="Sink created when none is injected")
    namespace: str = Field(
        default=DEFAULT_NAMESPACE,
        min_length=1,
        description="Prefix of the persisted pseudo-identity key",
    )
    max_event_name_length: int = Field(default=MAX_EVENT_NAME_LENGTH, gt=0)
    max_event_params_bytes: int = Field(default=MAX_EVENT_PARAMS_BYTES, ge=2)
    max_identifier_bytes: int = Field(default=MAX_IDENTIFIER_BYTES, ge=2)
    sink_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Sink-specific options (timeout, headers, format, output)",
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got {v!r}")
        return v

    @property
    def pseudo_id_key(self) -> str:
        """Storage key and cookie name holding the pseudo-identity."""
        return f"{self.namespace}_user_pseudo_id"


def merge_settings(current: AgentSettings, overrides: Mapping[str, Any] | None) -> AgentSettings:
    """Shallow-merge overrides over current settings.

    Nested values (sink_options) are replaced, not merged.

    Raises:
        pydantic.ValidationError: If the merged options are invalid
        TypeError: If overrides is not a mapping
    """
    if overrides is None:
        return current
    if not isinstance(overrides, Mapping):
        raise TypeError(f"Configuration must be a mapping, got {type(overrides).__name__}")
    return AgentSettings.model_validate({**current.model_dump(), **overrides})
