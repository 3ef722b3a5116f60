"""Authoritative in-process Python API for the registration code service."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from time import monotonic
from typing import Awaitable, Callable

from packages.regbot_shared.config import RegBotSettings
from resources.adapters.chat import ChatPlatform, TriggerEvent
from resources.adapters.code_api import CodeApiAdapter
from services.action.registration_codes.cooldown import CooldownScheduler
from services.action.registration_codes.domain import OrchestrationResult


class RegistrationCodeService(ABC):
    """Public API invoked by the chat-platform layer."""

    @abstractmethod
    async def handle_trigger(self, event: TriggerEvent) -> OrchestrationResult:
        """Run one trigger to a terminal outcome; never raises."""

    @abstractmethod
    async def announce_startup(self, *, bot_tag: str) -> None:
        """Record that the bot session is online."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release outbound connections; call once when the bot shuts down."""


def build_registration_code_service(
    *,
    settings: RegBotSettings,
    chat: ChatPlatform,
    code_api: CodeApiAdapter | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    now_provider: Callable[[], datetime] | None = None,
    clock: Callable[[], float] | None = None,
    cooldown_scheduler: CooldownScheduler | None = None,
) -> RegistrationCodeService:
    """Wire the orchestrator and its collaborators from typed settings."""
    from resources.adapters.code_api import (
        HttpCodeApiAdapter,
        resolve_code_api_adapter_settings,
    )
    from services.action.registration_codes.audit import (
        AuditLogger,
        AuditSink,
        ChatChannelAuditSink,
        ProcessIdentity,
        ProcessLogAuditSink,
    )
    from services.action.registration_codes.client import CodeRequestClient
    from services.action.registration_codes.config import (
        resolve_registration_code_settings,
    )
    from services.action.registration_codes.cooldown import CooldownGuard
    from services.action.registration_codes.delivery import DeliveryDispatcher
    from services.action.registration_codes.implementation import (
        RegistrationCodeOrchestrator,
    )
    from services.action.registration_codes.messages import RegistrationMessages

    service_settings = resolve_registration_code_settings(settings)
    adapter = code_api or HttpCodeApiAdapter(
        settings=resolve_code_api_adapter_settings(settings),
        sleep=sleep,
    )

    sinks: list[AuditSink] = [
        ProcessLogAuditSink(
            body_limit=service_settings.body_summary_limit,
            stack_limit=service_settings.stack_limit,
        )
    ]
    if service_settings.audit_channel_id is not None:
        sinks.append(
            ChatChannelAuditSink(
                chat=chat,
                channel_id=service_settings.audit_channel_id,
                body_limit=service_settings.body_summary_limit,
                stack_limit=service_settings.stack_limit,
            )
        )
    audit = AuditLogger(
        sinks=sinks,
        identity=ProcessIdentity.current(
            environment=settings.logging.environment,
            build=service_settings.build_version,
        ),
    )

    messages = RegistrationMessages(
        text_command=service_settings.text_command,
        slash_command=service_settings.slash_command,
        game_command=service_settings.game_command,
        display_timezone=service_settings.display_timezone,
    )
    cooldown = CooldownGuard(
        window_seconds=service_settings.cooldown_window_seconds,
        removal_grace_seconds=service_settings.cooldown_removal_grace_seconds,
        clock=clock or monotonic,
        scheduler=cooldown_scheduler,
    )

    return RegistrationCodeOrchestrator(
        settings=service_settings,
        cooldown=cooldown,
        client=CodeRequestClient(
            adapter=adapter,
            audit=audit,
            settings=service_settings,
            sleep=sleep,
            now_provider=now_provider,
        ),
        dispatcher=DeliveryDispatcher(
            chat=chat,
            audit=audit,
            messages=messages,
            post_confirmation=service_settings.post_confirmation,
            delete_trigger_message=service_settings.delete_trigger_message,
        ),
        audit=audit,
        messages=messages,
        now_provider=now_provider,
    )
