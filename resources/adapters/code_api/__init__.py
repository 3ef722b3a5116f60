"""Code API adapter resource exports."""

from resources.adapters.code_api.adapter import (
    CodeApiAdapter,
    CodeApiDependencyError,
    CodeApiError,
    CodeApiResponse,
)
from resources.adapters.code_api.component import RESOURCE_COMPONENT_ID
from resources.adapters.code_api.config import (
    CodeApiAdapterSettings,
    resolve_code_api_adapter_settings,
)
from resources.adapters.code_api.http_adapter import HttpCodeApiAdapter

__all__ = [
    "CodeApiAdapter",
    "CodeApiAdapterSettings",
    "CodeApiDependencyError",
    "CodeApiError",
    "CodeApiResponse",
    "HttpCodeApiAdapter",
    "RESOURCE_COMPONENT_ID",
    "resolve_code_api_adapter_settings",
]
