"""Structural and temporal validation of generate-code response bodies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from services.action.registration_codes.domain import CodeResult


class InvalidCodeReason(str, Enum):
    """Why a response body cannot be surfaced to the user."""

    MISSING_CODE = "missing_code"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CodeValidation:
    """Validation verdict; exactly one of ``result``/``reason`` is set."""

    result: CodeResult | None = None
    reason: InvalidCodeReason | None = None
    code: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def validate_code_payload(body: object, *, now: datetime) -> CodeValidation:
    """Return a ``CodeResult`` only for a present code that is not yet expired.

    A missing or empty ``expiresAt`` means no declared expiry. An unparsable
    one is handled like an expired code.
    """
    if not isinstance(body, dict):
        return CodeValidation(reason=InvalidCodeReason.MISSING_CODE)

    code = body.get("code")
    if not isinstance(code, str) or code.strip() == "":
        return CodeValidation(reason=InvalidCodeReason.MISSING_CODE)

    raw_expiry = body.get("expiresAt")
    expires_at: datetime | None = None
    if raw_expiry not in (None, ""):
        expires_at = parse_expiry(raw_expiry)
        if expires_at is None or expires_at <= _as_aware(now):
            return CodeValidation(reason=InvalidCodeReason.EXPIRED, code=code)

    return CodeValidation(
        result=CodeResult(
            code=code,
            expires_at=expires_at,
            reused=bool(body.get("reused", False)),
        ),
        code=code,
    )


def parse_expiry(value: object) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return _as_aware(parsed)


def _as_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
