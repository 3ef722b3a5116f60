"""Correlated audit events for the registration code lifecycle.

Events are plain data. Presentation belongs to the sinks: the admin-channel
sink renders a compact text block, the process-log sink hands structured
fields to the stdout logger. ``AuditLogger.emit`` never raises.
"""

from __future__ import annotations

import json
import logging
import os
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence

from packages.regbot_shared.logging import fields, get_logger
from resources.adapters.chat import ChatPlatform
from services.action.registration_codes.domain import CodeRequest

_LOGGER = get_logger(__name__)

DEFAULT_BODY_SUMMARY_LIMIT = 400
DEFAULT_STACK_LIMIT = 1500
_ELLIPSIS = "..."


class AuditLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class AuditAction(str, Enum):
    """Enumerated event tags; one trigger run shares one request id."""

    BOT_STARTED = "bot_started"
    START = "start"
    COOLDOWN_HIT = "cooldown_hit"
    API_FETCH_ERROR = "api_fetch_error"
    API_ERROR = "api_error"
    API_RATE_LIMITED = "api_rate_limited"
    API_MALFORMED_RESPONSE = "api_malformed_response"
    API_EXPIRED_CODE = "api_returned_expired_code"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"
    DM_SENT = "dm_sent"
    DM_FAILED = "dm_failed"
    COMPLETE = "complete"
    DELIVERY_FAILED = "delivery_failed"
    UNEXPECTED_ERROR = "unexpected_handler_error"


_LEVEL_MARKERS = {
    AuditLevel.INFO: "🟢 INFO",
    AuditLevel.WARN: "🟡 WARNING",
    AuditLevel.ERROR: "🔴 ERROR",
}

_STDLIB_LEVELS = {
    AuditLevel.INFO: logging.INFO,
    AuditLevel.WARN: logging.WARNING,
    AuditLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class ApiCallSummary:
    """Status, latency and (optionally) body of one remote exchange."""

    status: int
    latency_ms: int
    body: Any = None


@dataclass(frozen=True)
class AuditEvent:
    level: AuditLevel
    action: AuditAction
    request_id: str | None = None
    user: str | None = None
    user_id: str | None = None
    code: str | None = None
    reused: bool | None = None
    api: ApiCallSummary | None = None
    dm_sent: bool | None = None
    dm_error: str | None = None
    deleted_message: bool | None = None
    attempts: int | None = None
    extra: str | None = None
    error_stack: str | None = None


def request_event(
    request: CodeRequest,
    level: AuditLevel,
    action: AuditAction,
    **values: Any,
) -> AuditEvent:
    """Build an event tagged with the request's id and user."""
    return AuditEvent(
        level=level,
        action=action,
        request_id=request.request_id,
        user=request.display_name,
        user_id=request.user_id,
        **values,
    )


def format_exception_stack(exc: BaseException) -> str:
    """Return the full formatted traceback, chained causes included."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


@dataclass(frozen=True)
class ProcessIdentity:
    """Footer that tells bot instances apart in a shared admin channel."""

    pid: int
    environment: str
    build: str | None = None

    @classmethod
    def current(cls, *, environment: str, build: str | None = None) -> ProcessIdentity:
        return cls(pid=os.getpid(), environment=environment, build=build)

    def footer(self) -> str:
        text = f"pid={self.pid} env={self.environment}"
        if self.build:
            text += f" commit={self.build}"
        return text


def summarize_body(body: Any, *, limit: int = DEFAULT_BODY_SUMMARY_LIMIT) -> str:
    """Stringify a response body and cut it at ``limit`` characters."""
    if isinstance(body, str):
        summary = body
    else:
        summary = json.dumps(body, ensure_ascii=False, default=str, separators=(",", ":"))
    if len(summary) > limit:
        return summary[:limit] + _ELLIPSIS
    return summary


def truncate_stack(stack: str, *, limit: int = DEFAULT_STACK_LIMIT) -> str:
    return stack[:limit]


def render_audit_text(
    event: AuditEvent,
    identity: ProcessIdentity,
    *,
    body_limit: int = DEFAULT_BODY_SUMMARY_LIMIT,
    stack_limit: int = DEFAULT_STACK_LIMIT,
) -> str:
    """Render one event as the admin-channel text block, in fixed field order."""
    lines = [_LEVEL_MARKERS[event.level]]
    if event.request_id:
        lines.append(f"requestId: {event.request_id}")
    lines.append(f"Action: {event.action.value}")
    if event.user:
        lines.append(f"Usuario: {event.user} (ID: {event.user_id})")
    if event.code:
        suffix = " (reused)" if event.reused else ""
        lines.append(f"Codigo: {event.code}{suffix}")
    if event.api is not None:
        lines.append(f"API: status={event.api.status} latency={event.api.latency_ms}ms")
        if event.api.body is not None:
            lines.append(f"API body: {summarize_body(event.api.body, limit=body_limit)}")
    if event.dm_sent is not None:
        lines.append(f"DM: {'SENT' if event.dm_sent else 'FAILED'}")
    if event.dm_error:
        lines.append(f"DM error: {event.dm_error}")
    if event.deleted_message is not None:
        lines.append(f"DeleteMessage: {'OK' if event.deleted_message else 'FAILED'}")
    if event.attempts:
        lines.append(f"Attempts: {event.attempts}")
    if event.extra:
        lines.append(f"Extra: {event.extra}")
    lines.append(f"Bot: {identity.footer()}")
    if event.error_stack:
        lines.append(f"Stack: ```{truncate_stack(event.error_stack, limit=stack_limit)}```")
    return "\n".join(lines)


class AuditSink(Protocol):
    """Destination for audit events; owns presentation."""

    async def write(self, event: AuditEvent, identity: ProcessIdentity) -> None:
        """Deliver one event; may raise, the logger absorbs failures."""


class ChatChannelAuditSink:
    """Posts rendered events to a private admin channel."""

    def __init__(
        self,
        *,
        chat: ChatPlatform,
        channel_id: str,
        body_limit: int = DEFAULT_BODY_SUMMARY_LIMIT,
        stack_limit: int = DEFAULT_STACK_LIMIT,
    ) -> None:
        self._chat = chat
        self._channel_id = channel_id
        self._body_limit = body_limit
        self._stack_limit = stack_limit

    async def write(self, event: AuditEvent, identity: ProcessIdentity) -> None:
        text = render_audit_text(
            event,
            identity,
            body_limit=self._body_limit,
            stack_limit=self._stack_limit,
        )
        await self._chat.send_channel_message(channel_id=self._channel_id, text=text)


class ProcessLogAuditSink:
    """Mirrors events into the stdout process log as structured fields.

    Codes are left out; stdout is collected by the hosting platform.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        body_limit: int = DEFAULT_BODY_SUMMARY_LIMIT,
        stack_limit: int = DEFAULT_STACK_LIMIT,
    ) -> None:
        self._logger = logger or get_logger("regbot.audit")
        self._body_limit = body_limit
        self._stack_limit = stack_limit

    async def write(self, event: AuditEvent, identity: ProcessIdentity) -> None:
        payload: dict[str, Any] = {
            fields.REQUEST_ID: event.request_id,
            fields.ACTION: event.action.value,
            fields.USER: event.user,
            fields.USER_ID: event.user_id,
            fields.REUSED: event.reused,
            fields.DM_SENT: event.dm_sent,
            fields.DM_ERROR: event.dm_error,
            fields.DELETED_MESSAGE: event.deleted_message,
            fields.ATTEMPTS: event.attempts,
            fields.EXTRA: event.extra,
            fields.PID: identity.pid,
            fields.ENVIRONMENT: identity.environment,
            fields.BUILD: identity.build,
        }
        if event.api is not None:
            payload[fields.API_STATUS] = event.api.status
            payload[fields.API_LATENCY_MS] = event.api.latency_ms
            if event.api.body is not None:
                payload[fields.API_BODY] = summarize_body(
                    _redact_code(event.api.body), limit=self._body_limit
                )
        if event.error_stack:
            payload[fields.ERROR_STACK] = truncate_stack(
                event.error_stack, limit=self._stack_limit
            )
        self._logger.log(
            _STDLIB_LEVELS[event.level],
            "audit %s",
            event.action.value,
            extra={"fields": payload},
        )


def _redact_code(body: Any) -> Any:
    if isinstance(body, dict) and "code" in body:
        return {**body, "code": "<redacted>"}
    return body


class AuditLogger:
    """Fans events out to every sink; a failing sink never reaches the caller."""

    def __init__(self, *, sinks: Sequence[AuditSink], identity: ProcessIdentity) -> None:
        self._sinks = tuple(sinks)
        self._identity = identity

    @property
    def identity(self) -> ProcessIdentity:
        return self._identity

    async def emit(self, event: AuditEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.write(event, self._identity)
            except Exception:
                _LOGGER.exception(
                    "audit sink %s failed for action=%s request_id=%s",
                    type(sink).__name__,
                    event.action.value,
                    event.request_id,
                )
