"""Pydantic settings for registration code orchestration."""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.regbot_shared.config import RegBotSettings, resolve_component_settings
from services.action.registration_codes.component import SERVICE_COMPONENT_ID


class RegistrationCodeServiceSettings(BaseModel):
    """Retry, cooldown, audit and delivery knobs for one bot process."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    http_error_backoff_seconds: float = Field(default=0.15, ge=0)
    transport_failure_backoff_seconds: float = Field(default=0.2, ge=0)
    expired_code_backoff_seconds: float = Field(default=0.2, ge=0)

    cooldown_window_seconds: float = Field(default=3.0, gt=0)
    cooldown_removal_grace_seconds: float = Field(default=0.05, ge=0)

    audit_channel_id: str | None = None
    build_version: str | None = None
    body_summary_limit: int = Field(default=400, ge=1)
    stack_limit: int = Field(default=1500, ge=1)

    text_command: str = "!codigo"
    slash_command: str = "codigo"
    game_command: str = "!registrarse"
    display_timezone: str = "UTC"
    post_confirmation: bool = True
    delete_trigger_message: bool = True

    @field_validator("audit_channel_id", "build_version", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        """Treat blank optional identifiers as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("text_command", mode="before")
    @classmethod
    def _normalize_text_command(cls, value: object) -> object:
        """Match text commands case-insensitively."""
        if not isinstance(value, str):
            return value
        normalized = value.strip().lower()
        if normalized == "":
            raise ValueError("text_command must be non-empty")
        return normalized

    @field_validator("slash_command", mode="before")
    @classmethod
    def _normalize_slash_command(cls, value: object) -> object:
        """Store the interaction name without its leading slash."""
        if not isinstance(value, str):
            return value
        normalized = value.strip().lstrip("/").lower()
        if normalized == "":
            raise ValueError("slash_command must be non-empty")
        return normalized

    @field_validator("display_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        """Reject unknown IANA zone names at startup."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Invalid timezone: {value}") from exc
        return value


def resolve_registration_code_settings(
    settings: RegBotSettings,
) -> RegistrationCodeServiceSettings:
    """Resolve service settings from ``components.service.registration_codes``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=RegistrationCodeServiceSettings,
    )
