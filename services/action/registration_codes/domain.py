"""Domain payload contracts for registration code orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class CodeResult(BaseModel):
    """A validated code returned by the remote API; never persisted."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: str
    expires_at: datetime | None = None
    reused: bool = False


@dataclass
class CodeRequest:
    """One trigger's identity; only ``attempt_count`` changes after creation."""

    request_id: str
    user_id: str
    username: str
    display_name: str
    triggered_at: datetime
    attempt_count: int = 0

    def record_attempt(self) -> int:
        """Count one more remote attempt and return its 1-based number."""
        self.attempt_count += 1
        return self.attempt_count


class GenerationStatus(str, Enum):
    """Terminal result of the attempt loop."""

    SUCCEEDED = "succeeded"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationOutcome:
    """What the code request client produced for one trigger."""

    status: GenerationStatus
    attempts: int
    result: CodeResult | None = None
    error: str | None = None
    error_stack: str | None = None


class DeliveryStatus(str, Enum):
    """How a message reached (or failed to reach) the user."""

    DELIVERED = "delivered"
    DELIVERED_WITH_CHANNEL_FALLBACK = "delivered_with_channel_fallback"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryReport:
    """Result of delivering a code by private message."""

    status: DeliveryStatus
    dm_sent: bool
    confirmation_posted: bool = False
    fallback_notice_posted: bool = False
    dm_error: str | None = None


@dataclass(frozen=True)
class NotificationReport:
    """Result of a DM-first, channel-fallback informational message."""

    status: DeliveryStatus
    dm_sent: bool
    channel_posted: bool = False


class OrchestrationState(str, Enum):
    """Lifecycle states of one trigger run.

    Validation runs inside ``REQUESTING`` because the client validates each
    attempt before deciding whether to retry.
    """

    IDLE = "idle"
    COOLDOWN_CHECK = "cooldown_check"
    REQUESTING = "requesting"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    FAILED = "failed"


class OrchestrationOutcome(str, Enum):
    """Terminal outcome of one trigger run."""

    COMPLETED = "completed"
    IGNORED = "ignored"
    COOLDOWN = "cooldown"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    GENERATION_FAILED = "generation_failed"
    DELIVERY_FAILED = "delivery_failed"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class OrchestrationResult:
    """Summary returned to the chat-platform layer after one trigger."""

    outcome: OrchestrationOutcome
    request_id: str | None = None
    attempts: int = 0
    dm_sent: bool | None = None
    deleted_message: bool | None = None
