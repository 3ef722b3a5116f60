"""Concrete registration code orchestrator."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable

from packages.regbot_shared.ids import generate_ulid_str
from packages.regbot_shared.logging import fields, get_logger, log_context
from resources.adapters.chat import TriggerEvent, TriggerKind
from services.action.registration_codes.audit import (
    AuditAction,
    AuditEvent,
    AuditLevel,
    AuditLogger,
    format_exception_stack,
    request_event,
)
from services.action.registration_codes.client import CodeRequestClient
from services.action.registration_codes.config import RegistrationCodeServiceSettings
from services.action.registration_codes.cooldown import CooldownGuard
from services.action.registration_codes.delivery import DeliveryDispatcher
from services.action.registration_codes.domain import (
    CodeRequest,
    DeliveryStatus,
    GenerationStatus,
    OrchestrationOutcome,
    OrchestrationResult,
    OrchestrationState,
)
from services.action.registration_codes.messages import RegistrationMessages
from services.action.registration_codes.service import RegistrationCodeService

_LOGGER = get_logger(__name__)

_TRANSITIONS: dict[OrchestrationState, frozenset[OrchestrationState]] = {
    OrchestrationState.IDLE: frozenset({OrchestrationState.COOLDOWN_CHECK}),
    OrchestrationState.COOLDOWN_CHECK: frozenset(
        {OrchestrationState.REQUESTING, OrchestrationState.FAILED}
    ),
    OrchestrationState.REQUESTING: frozenset(
        {OrchestrationState.DELIVERING, OrchestrationState.FAILED}
    ),
    OrchestrationState.DELIVERING: frozenset(
        {OrchestrationState.COMPLETED, OrchestrationState.FAILED}
    ),
}


class _Run:
    """State tracker for one trigger run."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self.state = OrchestrationState.IDLE

    def advance(self, target: OrchestrationState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            raise RuntimeError(
                f"invalid orchestration transition {self.state.value} -> {target.value}"
            )
        _LOGGER.debug("request %s: %s -> %s", self.request_id, self.state.value, target.value)
        self.state = target


class RegistrationCodeOrchestrator(RegistrationCodeService):
    """Turns one trigger into a correlated, retried, validated delivery.

    Text commands and interactions share the whole pipeline; they differ
    only in trigger deletion and in the retry hint shown to the user.
    """

    def __init__(
        self,
        *,
        settings: RegistrationCodeServiceSettings,
        cooldown: CooldownGuard,
        client: CodeRequestClient,
        dispatcher: DeliveryDispatcher,
        audit: AuditLogger,
        messages: RegistrationMessages,
        request_id_factory: Callable[[], str] = generate_ulid_str,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._cooldown = cooldown
        self._client = client
        self._dispatcher = dispatcher
        self._audit = audit
        self._messages = messages
        self._request_id_factory = request_id_factory
        self._now_provider = now_provider or (lambda: datetime.now(UTC))

    def should_handle(self, event: TriggerEvent) -> bool:
        """Return false for bot authors and for unrelated text messages."""
        if event.user.is_bot:
            return False
        if event.kind is TriggerKind.TEXT_COMMAND:
            content = (event.content or "").strip().lower()
            return content == self._settings.text_command
        command = (event.command_name or "").strip().lstrip("/").lower()
        return command == self._settings.slash_command

    async def announce_startup(self, *, bot_tag: str) -> None:
        _LOGGER.info("bot online as %s", bot_tag)
        await self._audit.emit(
            AuditEvent(
                level=AuditLevel.INFO,
                action=AuditAction.BOT_STARTED,
                extra=f"Online as {bot_tag}",
            )
        )

    async def aclose(self) -> None:
        _LOGGER.info("closing registration code service")
        await self._client.aclose()

    async def handle_trigger(self, event: TriggerEvent) -> OrchestrationResult:
        """Run one trigger to a terminal outcome; unexpected errors are absorbed."""
        if not self.should_handle(event):
            return OrchestrationResult(outcome=OrchestrationOutcome.IGNORED)
        try:
            return await self._run(event)
        except Exception as exc:
            request_id = self._request_id_factory()
            with log_context({fields.REQUEST_ID: request_id}):
                _LOGGER.exception("unexpected trigger handler error")
                await self._audit.emit(
                    AuditEvent(
                        level=AuditLevel.ERROR,
                        action=AuditAction.UNEXPECTED_ERROR,
                        request_id=request_id,
                        extra=str(exc) or type(exc).__name__,
                        error_stack=format_exception_stack(exc),
                    )
                )
            return OrchestrationResult(
                outcome=OrchestrationOutcome.UNEXPECTED_ERROR,
                request_id=request_id,
            )

    async def _run(self, event: TriggerEvent) -> OrchestrationResult:
        request = CodeRequest(
            request_id=self._request_id_factory(),
            user_id=event.user.user_id,
            username=event.user.username,
            display_name=event.user.tag,
            triggered_at=self._now_provider(),
        )
        run = _Run(request.request_id)
        context = {
            fields.REQUEST_ID: request.request_id,
            fields.USER_ID: request.user_id,
            fields.CHANNEL_ID: event.channel_id,
            fields.TRIGGER_KIND: event.kind.value,
        }
        with log_context(context):
            await self._audit.emit(
                request_event(request, AuditLevel.INFO, AuditAction.START)
            )

            run.advance(OrchestrationState.COOLDOWN_CHECK)
            decision = self._cooldown.check_and_reserve(request.user_id)
            if not decision.allowed:
                run.advance(OrchestrationState.FAILED)
                await self._dispatcher.reply_in_channel(
                    trigger=event, text=self._messages.cooldown_reply(event)
                )
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.COOLDOWN_HIT,
                        extra=f"remaining_ms={decision.remaining_ms}",
                    )
                )
                return OrchestrationResult(
                    outcome=OrchestrationOutcome.COOLDOWN,
                    request_id=request.request_id,
                )

            run.advance(OrchestrationState.REQUESTING)
            deleted_message = await self._dispatcher.delete_trigger(event)
            outcome = await self._client.request_code(request)

            if outcome.status is GenerationStatus.RATE_LIMITED:
                run.advance(OrchestrationState.FAILED)
                await self._dispatcher.notify(
                    trigger=event, text=self._messages.rate_limited()
                )
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.RATE_LIMITED,
                        attempts=outcome.attempts,
                        deleted_message=deleted_message,
                    )
                )
                return OrchestrationResult(
                    outcome=OrchestrationOutcome.UPSTREAM_RATE_LIMITED,
                    request_id=request.request_id,
                    attempts=outcome.attempts,
                    deleted_message=deleted_message,
                )

            if outcome.status is GenerationStatus.FAILED or outcome.result is None:
                run.advance(OrchestrationState.FAILED)
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.ERROR,
                        AuditAction.FAILED,
                        attempts=outcome.attempts,
                        extra=outcome.error or "unknown",
                        error_stack=outcome.error_stack,
                        deleted_message=deleted_message,
                    )
                )
                await self._dispatcher.notify(
                    trigger=event, text=self._messages.generation_failed()
                )
                return OrchestrationResult(
                    outcome=OrchestrationOutcome.GENERATION_FAILED,
                    request_id=request.request_id,
                    attempts=outcome.attempts,
                    deleted_message=deleted_message,
                )

            run.advance(OrchestrationState.DELIVERING)
            result = outcome.result
            report = await self._dispatcher.deliver(
                request=request, trigger=event, result=result
            )

            if report.status is not DeliveryStatus.DELIVERED:
                run.advance(OrchestrationState.FAILED)
                await self._audit.emit(
                    request_event(
                        request,
                        AuditLevel.WARN,
                        AuditAction.DELIVERY_FAILED,
                        code=result.code,
                        reused=result.reused,
                        dm_sent=False,
                        dm_error=report.dm_error,
                        deleted_message=deleted_message,
                        attempts=outcome.attempts,
                    )
                )
                return OrchestrationResult(
                    outcome=OrchestrationOutcome.DELIVERY_FAILED,
                    request_id=request.request_id,
                    attempts=outcome.attempts,
                    dm_sent=False,
                    deleted_message=deleted_message,
                )

            run.advance(OrchestrationState.COMPLETED)
            await self._audit.emit(
                request_event(
                    request,
                    AuditLevel.INFO,
                    AuditAction.COMPLETE,
                    code=result.code,
                    reused=result.reused,
                    dm_sent=True,
                    deleted_message=deleted_message,
                    attempts=outcome.attempts,
                )
            )
            return OrchestrationResult(
                outcome=OrchestrationOutcome.COMPLETED,
                request_id=request.request_id,
                attempts=outcome.attempts,
                dm_sent=True,
                deleted_message=deleted_message,
            )
