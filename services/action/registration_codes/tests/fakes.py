"""Fakes for chat, code API, audit sinks, sleep and time."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable

from resources.adapters.chat import ChatDeliveryError, ChatUser, TriggerEvent, TriggerKind
from resources.adapters.code_api import CodeApiResponse
from services.action.registration_codes.audit import AuditEvent, ProcessIdentity

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class FakeChat:
    def __init__(self) -> None:
        self.private_messages: list[tuple[str, str]] = []
        self.channel_messages: list[tuple[str, str]] = []
        self.deleted: list[tuple[str, str]] = []
        self.fail_private = False
        self.fail_channel = False
        self.fail_delete = False

    async def send_private_message(self, *, user: ChatUser, text: str) -> None:
        if self.fail_private:
            raise ChatDeliveryError("Cannot send messages to this user")
        self.private_messages.append((user.user_id, text))

    async def send_channel_message(self, *, channel_id: str, text: str) -> None:
        if self.fail_channel:
            raise ChatDeliveryError("Missing permissions")
        self.channel_messages.append((channel_id, text))

    async def delete_message(self, *, channel_id: str, message_id: str) -> None:
        if self.fail_delete:
            raise ChatDeliveryError("Unknown message")
        self.deleted.append((channel_id, message_id))


class FakeCodeApi:
    """Replays scripted responses; exceptions in the script are raised."""

    def __init__(self, script: list[CodeApiResponse | Exception] | None = None) -> None:
        self.script = list(script or [])
        self.calls: list[dict[str, str]] = []
        self.closed = False

    async def generate_code(
        self, *, discord_id: str, username: str, request_id: str
    ) -> CodeApiResponse:
        self.calls.append(
            {"discord_id": discord_id, "username": username, "request_id": request_id}
        )
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def write(self, event: AuditEvent, identity: ProcessIdentity) -> None:
        del identity
        self.events.append(event)

    def actions(self) -> list[str]:
        return [event.action.value for event in self.events]


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[float, Callable[[], None], FakeHandle]] = []

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle()
        self.scheduled.append((delay_seconds, callback, handle))
        return handle

    def fire_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for _delay, callback, handle in pending:
            if not handle.cancelled:
                callback()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def ok_response(body: object, *, status_code: int = 200, latency_ms: int = 42) -> CodeApiResponse:
    return CodeApiResponse(status_code=status_code, body=body, latency_ms=latency_ms)


def text_trigger(
    *,
    user_id: str = "1001",
    username: str = "alice",
    content: str = "!codigo",
    message_id: str | None = "m-1",
) -> TriggerEvent:
    return TriggerEvent(
        kind=TriggerKind.TEXT_COMMAND,
        user=ChatUser(user_id=user_id, username=username),
        channel_id="general",
        message_id=message_id,
        content=content,
    )


def interaction_trigger(*, user_id: str = "1001", username: str = "alice") -> TriggerEvent:
    return TriggerEvent(
        kind=TriggerKind.INTERACTION,
        user=ChatUser(user_id=user_id, username=username),
        channel_id="general",
        command_name="codigo",
    )
