"""Typed configuration models for registration bot runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "regbot" / "regbot.yaml"


class LoggingSettings(BaseModel):
    """Process logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "regbot"
    environment: str = "dev"


class ComponentNamespaceSettings(BaseModel):
    """Namespace map for grouped component settings under ``components.<kind>``."""

    model_config = ConfigDict(extra="allow")


class ComponentsSettings(BaseModel):
    """Typed ``components`` subtree with support for component-local extras."""

    model_config = ConfigDict(extra="allow")

    service: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )
    adapter: ComponentNamespaceSettings = Field(
        default_factory=ComponentNamespaceSettings
    )

    @model_validator(mode="before")
    @classmethod
    def _reject_flat_component_keys(cls, value: object) -> object:
        """Reject flat component keys in favor of grouped namespaces."""
        if not isinstance(value, dict):
            return value
        flat_prefixed_keys = tuple(
            key
            for key in value
            if isinstance(key, str) and key.startswith(("service_", "adapter_"))
        )
        if not flat_prefixed_keys:
            return value

        bad_key = flat_prefixed_keys[0]
        kind, _, name = bad_key.partition("_")
        raise ValueError(
            f"components.{bad_key} is invalid; use components.{kind}.{name} instead"
        )


class RegBotSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="REGBOT_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: RegBotSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Resolve one component settings object from grouped ``components`` keys."""
    raw_components = settings.components.model_dump(mode="python")
    kind, separator, name = component_id.partition("_")
    if not separator or kind not in {"service", "adapter"}:
        raise ValueError(f"component id must be prefixed by its kind: {component_id}")

    namespace = raw_components.get(kind, {})
    namespace_path = f"components.{kind}"
    if not isinstance(namespace, dict):
        raise TypeError(f"{namespace_path} must resolve to an object mapping")
    resolved = namespace.get(name, {})
    if not isinstance(resolved, dict):
        raise TypeError(f"{namespace_path}.{name} must resolve to an object mapping")
    return model.model_validate(resolved)


def load_settings(*, config_path: str | Path | None = None, **overrides: object) -> RegBotSettings:
    """Build root settings, optionally reading YAML from ``config_path``."""
    if config_path is None:
        return RegBotSettings(**overrides)

    class _PathBoundSettings(RegBotSettings):
        _config_path: ClassVar[Path] = Path(config_path)

    return _PathBoundSettings(**overrides)
