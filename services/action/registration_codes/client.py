"""Bounded retry loop around the remote generate-code call."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Awaitable, Callable

from packages.regbot_shared.logging import get_logger
from resources.adapters.code_api import CodeApiAdapter, CodeApiDependencyError
from services.action.registration_codes.audit import (
    ApiCallSummary,
    AuditAction,
    AuditLevel,
    AuditLogger,
    format_exception_stack,
    request_event,
)
from services.action.registration_codes.config import RegistrationCodeServiceSettings
from services.action.registration_codes.domain import (
    CodeRequest,
    GenerationOutcome,
    GenerationStatus,
)
from services.action.registration_codes.validation import (
    InvalidCodeReason,
    validate_code_payload,
)

_LOGGER = get_logger(__name__)

_STATUS_TOO_MANY_REQUESTS = 429


class CodeRequestClient:
    """Requests a code with up to ``max_attempts`` validated attempts.

    Each attempt emits exactly one audit event. HTTP 429 stops the loop at
    once; every other failure backs off linearly by attempt number.
    """

    def __init__(
        self,
        *,
        adapter: CodeApiAdapter,
        audit: AuditLogger,
        settings: RegistrationCodeServiceSettings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._adapter = adapter
        self._audit = audit
        self._settings = settings
        self._sleep = sleep
        self._now_provider = now_provider or (lambda: datetime.now(UTC))

    async def aclose(self) -> None:
        await self._adapter.aclose()

    async def request_code(self, request: CodeRequest) -> GenerationOutcome:
        """Run the attempt loop for one trigger."""
        last_error = "unknown"
        last_stack: str | None = None

        while request.attempt_count < self._settings.max_attempts:
            attempt = request.record_attempt()
            try:
                response = await self._adapter.generate_code(
                    discord_id=request.user_id,
                    username=request.username,
                    request_id=request.request_id,
                )
            except CodeApiDependencyError as exc:
                last_error = str(exc) or type(exc).__name__
                last_stack = format_exception_stack(exc)
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.API_FETCH_ERROR,
                        attempts=attempt,
                        extra=last_error,
                        error_stack=last_stack,
                    )
                )
                await self._backoff(self._settings.transport_failure_backoff_seconds, attempt)
                continue

            api = ApiCallSummary(
                status=response.status_code,
                latency_ms=response.latency_ms,
                body=response.body,
            )

            if response.status_code == _STATUS_TOO_MANY_REQUESTS:
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.API_RATE_LIMITED,
                        api=api,
                        attempts=attempt,
                    )
                )
                return GenerationOutcome(
                    status=GenerationStatus.RATE_LIMITED,
                    attempts=attempt,
                    error="upstream rate limited",
                )

            if not response.ok:
                last_error = f"API status {response.status_code}"
                last_stack = None
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.API_ERROR,
                        api=api,
                        attempts=attempt,
                        extra=last_error,
                    )
                )
                await self._backoff(self._settings.http_error_backoff_seconds, attempt)
                continue

            validation = validate_code_payload(response.body, now=self._now_provider())
            if validation.reason is InvalidCodeReason.MISSING_CODE:
                last_error = "API returned no code"
                last_stack = None
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.API_MALFORMED_RESPONSE,
                        api=api,
                        attempts=attempt,
                        extra=last_error,
                    )
                )
                await self._backoff(self._settings.http_error_backoff_seconds, attempt)
                continue

            result = validation.result
            if result is None:
                # Expired or unparsable expiry.
                last_error = "API returned an expired code"
                last_stack = None
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.API_EXPIRED_CODE,
                        code=validation.code,
                        api=ApiCallSummary(
                            status=response.status_code,
                            latency_ms=response.latency_ms,
                        ),
                        attempts=attempt,
                        extra=last_error,
                    )
                )
                await self._backoff(self._settings.expired_code_backoff_seconds, attempt)
                continue

            await self._audit.emit(
                request_event(
                    request,
                    AuditLevel.INFO,
                    AuditAction.SUCCESS,
                    code=result.code,
                    reused=result.reused,
                    api=ApiCallSummary(
                        status=response.status_code,
                        latency_ms=response.latency_ms,
                    ),
                    attempts=attempt,
                )
            )
            return GenerationOutcome(
                status=GenerationStatus.SUCCEEDED,
                attempts=attempt,
                result=result,
            )

        return GenerationOutcome(
            status=GenerationStatus.FAILED,
            attempts=request.attempt_count,
            error=last_error,
            error_stack=last_stack,
        )

    async def _backoff(self, step_seconds: float, attempt: int) -> None:
        """Sleep ``step * attempt`` unless no attempt remains."""
        if attempt >= self._settings.max_attempts:
            return
        delay = step_seconds * attempt
        _LOGGER.debug("code request attempt %s failed; retrying in %.3fs", attempt, delay)
        await self._sleep(delay)
