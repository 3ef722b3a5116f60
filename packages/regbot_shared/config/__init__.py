"""Public API for registration bot configuration utilities."""

from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    RegBotSettings,
    load_settings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "RegBotSettings",
    "load_settings",
    "resolve_component_settings",
]
