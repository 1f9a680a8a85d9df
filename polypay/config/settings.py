import os
import tomllib
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from polypay.exceptions import ConfigurationError

from .hooks import HookSettings
from .logging import LoggingSettings


__all__ = ["GatewaySettings", "Settings", "load_settings"]

logger = structlog.get_logger(__name__)

CONFIG_PATH_ENV = "POLYPAY_CONFIG"


class GatewaySettings(BaseModel):
    """A gateway declared in configuration."""

    model_config = ConfigDict(validate_assignment=True)

    factory: str = Field(
        description="Import path of a zero-argument callable returning the gateway, "
        "e.g. 'myapp.gateways:build_stripe'",
    )

    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque metadata stored with the gateway (credentials, display data)",
    )

    enabled: bool = Field(
        default=True,
        description="Register this gateway at startup",
    )

    @field_validator("factory")
    @classmethod
    def validate_factory(cls, v: str) -> str:
        v = v.strip()
        if not v or ("." not in v and ":" not in v):
            raise ValueError(f"Invalid factory import path: {v!r}")
        return v


class Settings(BaseSettings):
    """
    Configuration settings for PolyPay.

    Settings are loaded from environment variables (prefix ``POLYPAY_``,
    nested fields separated by ``__``), a ``.env`` file, and optionally a
    TOML file passed to :func:`load_settings`. Environment variables take
    precedence over file values; keyword overrides given to
    :func:`load_settings` take precedence over both.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYPAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        validate_assignment=True,
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    hooks: HookSettings = Field(
        default_factory=HookSettings,
        description="Hook slot configuration",
    )

    gateways: dict[str, GatewaySettings] = Field(
        default_factory=dict,
        description="Gateways to register at startup, keyed by gateway name",
    )

    default_gateway: str | None = Field(
        default=None,
        description="Gateway to select at startup",
    )

    load_entry_points: bool = Field(
        default=False,
        description="Register gateways published through the 'polypay.gateways' entry point group",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e


def load_settings(config_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Create settings from an optional TOML file and the environment.

    Args:
        config_path: TOML file to read; defaults to ``$POLYPAY_CONFIG`` if set
        **overrides: Values applied on top of the file and the environment

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file cannot be read or the values are invalid
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV) or None

    config_data: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        if path.suffix.lower() != ".toml":
            raise ConfigurationError(
                f"Unsupported config file format: {path.suffix}. "
                "Only TOML (.toml) files are supported."
            )
        config_data = Settings.load_toml_config(path)
        logger.info("config_file_loaded", path=str(path), category="config")

    try:
        settings = Settings(**config_data)
        if overrides:
            _apply_overrides(settings, overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    return settings


def _apply_overrides(target: BaseModel, overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if key not in type(target).model_fields:
            raise ConfigurationError(f"Unknown setting: {key}")
        current = getattr(target, key, None)
        if isinstance(value, dict) and isinstance(current, BaseModel):
            _apply_overrides(current, value)
        elif isinstance(value, dict) and isinstance(current, dict):
            setattr(target, key, {**current, **value})
        else:
            setattr(target, key, value)
