"""Fixtures for registration code service tests."""

from __future__ import annotations

import pytest

from services.action.registration_codes.audit import AuditLogger, ProcessIdentity
from services.action.registration_codes.config import RegistrationCodeServiceSettings
from services.action.registration_codes.tests.fakes import (
    FakeChat,
    FakeSleep,
    RecordingSink,
)


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def audit(sink: RecordingSink) -> AuditLogger:
    return AuditLogger(
        sinks=[sink],
        identity=ProcessIdentity(pid=4242, environment="test", build="abc123"),
    )


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def service_settings() -> RegistrationCodeServiceSettings:
    return RegistrationCodeServiceSettings()
