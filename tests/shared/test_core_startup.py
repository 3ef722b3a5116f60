"""Tests for core startup ordering and fail-fast configuration."""

from __future__ import annotations

import asyncio
import logging

import pytest
from pydantic import ValidationError

from packages.regbot_core.startup import run_core_startup
from packages.regbot_shared.config import RegBotSettings
from packages.regbot_shared.logging import clear_context
from services.action.registration_codes import RegistrationCodeService
from services.action.registration_codes.tests.fakes import FakeChat


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_context()


def _settings() -> RegBotSettings:
    return RegBotSettings(
        logging={"level": "WARNING", "json_output": False},
        components={"adapter": {"code_api": {"base_url": "https://codes.example.test"}}},
    )


def test_run_core_startup_configures_logging_before_building_service() -> None:
    """Startup should configure stdout logging, then build the service."""
    call_order: list[str] = []
    settings = _settings()

    class _Service(RegistrationCodeService):
        async def handle_trigger(self, event):
            raise NotImplementedError

        async def announce_startup(self, *, bot_tag: str) -> None:
            return None

        async def aclose(self) -> None:
            call_order.append("close")

    def _builder(**kwargs):
        call_order.append("build")
        assert logging.getLogger().level == logging.WARNING
        assert kwargs["settings"] is settings
        return _Service()

    result = run_core_startup(
        chat=FakeChat(),
        settings_loader=lambda: call_order.append("load") or settings,
        service_builder=_builder,
    )

    assert call_order == ["load", "build"]
    assert result.settings is settings
    assert isinstance(result.service, _Service)

    asyncio.run(result.aclose())
    assert call_order == ["load", "build", "close"]


def test_run_core_startup_builds_default_service() -> None:
    result = run_core_startup(chat=FakeChat(), settings=_settings())

    assert isinstance(result.service, RegistrationCodeService)
    asyncio.run(result.aclose())


def test_run_core_startup_fails_fast_without_code_api_url() -> None:
    """A missing API base URL should abort startup before the chat session."""
    with pytest.raises(ValidationError):
        run_core_startup(
            chat=FakeChat(),
            settings=RegBotSettings(logging={"json_output": False}),
        )
