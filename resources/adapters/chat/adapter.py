"""Transport-agnostic chat-platform protocol and DTOs."""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class ChatAdapterError(Exception):
    """Base exception for chat-platform adapter failures."""


class ChatDeliveryError(ChatAdapterError):
    """A send or delete call was refused or could not reach the platform."""


class TriggerKind(str, Enum):
    """How the user asked for a code."""

    TEXT_COMMAND = "text_command"
    INTERACTION = "interaction"


class ChatUser(BaseModel):
    """Identity of the user behind a trigger event."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str
    username: str
    discriminator: str | None = None
    is_bot: bool = False

    @property
    def tag(self) -> str:
        """Return ``username#discriminator`` or the bare username."""
        if self.discriminator and self.discriminator != "0":
            return f"{self.username}#{self.discriminator}"
        return self.username

    @property
    def mention(self) -> str:
        """Return the platform mention markup for this user."""
        return f"<@{self.user_id}>"


class TriggerEvent(BaseModel):
    """One user action that may start an orchestration run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: TriggerKind
    user: ChatUser
    channel_id: str
    message_id: str | None = None
    content: str | None = None
    command_name: str | None = None


@runtime_checkable
class ChatPlatform(Protocol):
    """Capabilities the orchestration core needs from the chat platform."""

    async def send_private_message(self, *, user: ChatUser, text: str) -> None:
        """Send a direct message; raise ``ChatDeliveryError`` when refused."""

    async def send_channel_message(self, *, channel_id: str, text: str) -> None:
        """Post to a channel; raise ``ChatDeliveryError`` when refused."""

    async def delete_message(self, *, channel_id: str, message_id: str) -> None:
        """Delete one message; raise ``ChatDeliveryError`` when refused."""
