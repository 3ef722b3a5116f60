"""Registration code service exports."""

from services.action.registration_codes.component import SERVICE_COMPONENT_ID
from services.action.registration_codes.config import (
    RegistrationCodeServiceSettings,
    resolve_registration_code_settings,
)
from services.action.registration_codes.domain import (
    CodeResult,
    OrchestrationOutcome,
    OrchestrationResult,
)
from services.action.registration_codes.service import (
    RegistrationCodeService,
    build_registration_code_service,
)

__all__ = [
    "CodeResult",
    "OrchestrationOutcome",
    "OrchestrationResult",
    "RegistrationCodeService",
    "RegistrationCodeServiceSettings",
    "SERVICE_COMPONENT_ID",
    "build_registration_code_service",
    "resolve_registration_code_settings",
]
