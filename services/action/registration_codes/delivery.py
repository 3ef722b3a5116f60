"""Delivery of codes and notices: private message first, channel as fallback."""

from __future__ import annotations

from packages.regbot_shared.logging import get_logger
from resources.adapters.chat import (
    ChatAdapterError,
    ChatPlatform,
    TriggerEvent,
    TriggerKind,
)
from services.action.registration_codes.audit import (
    AuditAction,
    AuditLevel,
    AuditLogger,
    format_exception_stack,
    request_event,
)
from services.action.registration_codes.domain import (
    CodeRequest,
    CodeResult,
    DeliveryReport,
    DeliveryStatus,
    NotificationReport,
)
from services.action.registration_codes.messages import RegistrationMessages

_LOGGER = get_logger(__name__)


class DeliveryDispatcher:
    """Sends codes by DM; public channel posts are always best-effort."""

    def __init__(
        self,
        *,
        chat: ChatPlatform,
        audit: AuditLogger,
        messages: RegistrationMessages,
        post_confirmation: bool = True,
        delete_trigger_message: bool = True,
    ) -> None:
        self._chat = chat
        self._audit = audit
        self._messages = messages
        self._post_confirmation = post_confirmation
        self._delete_trigger_message = delete_trigger_message

    async def deliver(
        self,
        *,
        request: CodeRequest,
        trigger: TriggerEvent,
        result: CodeResult,
    ) -> DeliveryReport:
        """DM the code; on refusal post a notice asking the user to open DMs.

        A refused DM is not retried and reports ``FAILED`` even though the
        code itself was generated.
        """
        text = self._messages.code_dm(code=result.code, expires_at=result.expires_at)
        try:
            await self._chat.send_private_message(user=trigger.user, text=text)
        except ChatAdapterError as exc:
            dm_error = str(exc) or type(exc).__name__
            await self._audit.emit(
                request_event(
                    request,
                    AuditLevel.WARN,
                    AuditAction.DM_FAILED,
                    code=result.code,
                    dm_sent=False,
                    dm_error=dm_error,
                    error_stack=format_exception_stack(exc),
                )
            )
            notice_posted = await self._post_channel(
                trigger, self._messages.dm_closed_notice(trigger)
            )
            return DeliveryReport(
                status=DeliveryStatus.FAILED,
                dm_sent=False,
                fallback_notice_posted=notice_posted,
                dm_error=dm_error,
            )

        await self._audit.emit(
            request_event(
                request,
                AuditLevel.INFO,
                AuditAction.DM_SENT,
                code=result.code,
                dm_sent=True,
            )
        )
        confirmation_posted = False
        if self._post_confirmation:
            confirmation_posted = await self._post_channel(
                trigger, self._messages.confirmation(trigger)
            )
        return DeliveryReport(
            status=DeliveryStatus.DELIVERED,
            dm_sent=True,
            confirmation_posted=confirmation_posted,
        )

    async def notify(self, *, trigger: TriggerEvent, text: str) -> NotificationReport:
        """Tell the user something by DM, or in the channel if DMs are closed."""
        try:
            await self._chat.send_private_message(user=trigger.user, text=text)
            return NotificationReport(status=DeliveryStatus.DELIVERED, dm_sent=True)
        except ChatAdapterError as exc:
            _LOGGER.info("notice DM refused for user %s: %s", trigger.user.user_id, exc)

        posted = await self._post_channel(
            trigger, self._messages.public_fallback(trigger, text)
        )
        return NotificationReport(
            status=(
                DeliveryStatus.DELIVERED_WITH_CHANNEL_FALLBACK
                if posted
                else DeliveryStatus.FAILED
            ),
            dm_sent=False,
            channel_posted=posted,
        )

    async def reply_in_channel(self, *, trigger: TriggerEvent, text: str) -> bool:
        return await self._post_channel(trigger, text)

    async def delete_trigger(self, trigger: TriggerEvent) -> bool | None:
        """Delete a text-command message; ``None`` when there is nothing to delete."""
        if not self._delete_trigger_message:
            return None
        if trigger.kind is not TriggerKind.TEXT_COMMAND or trigger.message_id is None:
            return None
        try:
            await self._chat.delete_message(
                channel_id=trigger.channel_id,
                message_id=trigger.message_id,
            )
        except ChatAdapterError as exc:
            _LOGGER.info("trigger message %s not deleted: %s", trigger.message_id, exc)
            return False
        return True

    async def _post_channel(self, trigger: TriggerEvent, text: str) -> bool:
        try:
            await self._chat.send_channel_message(channel_id=trigger.channel_id, text=text)
        except ChatAdapterError as exc:
            _LOGGER.warning(
                "channel post to %s failed: %s", trigger.channel_id, exc
            )
            return False
        return True
