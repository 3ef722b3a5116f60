"""Chat-platform adapter resource exports."""

from resources.adapters.chat.adapter import (
    ChatAdapterError,
    ChatDeliveryError,
    ChatPlatform,
    ChatUser,
    TriggerEvent,
    TriggerKind,
)

__all__ = [
    "ChatAdapterError",
    "ChatDeliveryError",
    "ChatPlatform",
    "ChatUser",
    "TriggerEvent",
    "TriggerKind",
]
