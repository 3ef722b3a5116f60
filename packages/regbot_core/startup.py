"""Process startup for the registration bot core."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from packages.regbot_shared.config import RegBotSettings, load_settings
from packages.regbot_shared.logging import configure_logging, get_logger
from resources.adapters.chat import ChatPlatform
from services.action.registration_codes import (
    RegistrationCodeService,
    build_registration_code_service,
)

_LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CoreStartupResult:
    """Objects the chat session layer needs once the core is ready."""

    settings: RegBotSettings
    service: RegistrationCodeService

    async def aclose(self) -> None:
        """Shutdown hook: close the service's outbound connections."""
        await self.service.aclose()


def run_core_startup(
    *,
    chat: ChatPlatform,
    settings: RegBotSettings | None = None,
    settings_loader: Callable[[], RegBotSettings] = load_settings,
    service_builder: Callable[..., RegistrationCodeService] = build_registration_code_service,
) -> CoreStartupResult:
    """Load settings, configure stdout logging and build the service.

    Missing mandatory settings (the code API base URL) raise here, before the
    chat session connects.
    """
    resolved = settings or settings_loader()
    configure_logging(
        level=resolved.logging.level,
        json_output=resolved.logging.json_output,
        service=resolved.logging.service,
        environment=resolved.logging.environment,
    )
    service = service_builder(settings=resolved, chat=chat)
    _LOGGER.info("registration code core ready")
    return CoreStartupResult(settings=resolved, service=service)
