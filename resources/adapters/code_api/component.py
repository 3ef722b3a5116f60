"""Component identity for the code API adapter resource."""

from __future__ import annotations

RESOURCE_COMPONENT_ID = "adapter_code_api"
