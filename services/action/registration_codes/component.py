"""Component identity for the registration code service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_registration_codes"
