"""Pydantic settings for the code API adapter resource."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.regbot_shared.config import RegBotSettings, resolve_component_settings
from resources.adapters.code_api.component import RESOURCE_COMPONENT_ID


class CodeApiAdapterSettings(BaseModel):
    """Runtime settings for generate-code calls and their transport retry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str
    generate_path: str = "/generate-code"
    timeout_seconds: float = Field(default=10.0, gt=0)
    transport_attempts: int = Field(default=2, ge=1)
    transport_backoff_initial_seconds: float = Field(default=0.15, ge=0)
    transport_backoff_multiplier: float = Field(default=2.0, ge=1.0)

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: object) -> object:
        """Require a non-empty base URL and drop any trailing slash."""
        if not isinstance(value, str):
            return value
        normalized = value.strip().rstrip("/")
        if normalized == "":
            raise ValueError("base_url must be non-empty")
        return normalized

    @field_validator("generate_path", mode="before")
    @classmethod
    def _normalize_generate_path(cls, value: object) -> object:
        """Normalize the endpoint path to an absolute URL path."""
        if not isinstance(value, str):
            return value
        path = value.strip()
        if path == "":
            raise ValueError("generate_path must not be empty")
        if not path.startswith("/"):
            path = f"/{path}"
        return path


def resolve_code_api_adapter_settings(
    settings: RegBotSettings,
) -> CodeApiAdapterSettings:
    """Resolve adapter settings from ``components.adapter.code_api``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=CodeApiAdapterSettings,
    )
