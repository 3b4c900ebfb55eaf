"""
Runtime settings for the OFX ingest service.

Values come from an optional YAML file and are then overridden by
environment variables prefixed with ``OFX_INGEST_``.
"""
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Tuple

import yaml

ENV_PREFIX = "OFX_INGEST_"
DEFAULT_SETTINGS_FILE = Path("config") / "ofx_ingest.yaml"


class ConfigValidationError(Exception):
    """Raised when a settings value cannot be used."""


@dataclass
class Settings:
    # Upload limit enforced before the parser runs (10 MiB)
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: Tuple[str, ...] = (".ofx",)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    # Most Brazilian banks still export Windows-1252
    fallback_encoding: str = "cp1252"
    cors_origins: Tuple[str, ...] = field(
        default_factory=lambda: ("http://localhost:5173", "http://localhost:3000")
    )

    def validate(self) -> "Settings":
        if self.max_upload_bytes <= 0:
            raise ConfigValidationError(
                f"max_upload_bytes must be positive, got {self.max_upload_bytes}"
            )
        if not isinstance(self.log_level, str) or not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigValidationError(f"Unknown log level: {self.log_level}")
        if not self.allowed_extensions:
            raise ConfigValidationError("allowed_extensions cannot be empty")
        self.allowed_extensions = tuple(e.lower() for e in self.allowed_extensions)
        return self

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _read_yaml(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Settings file {path} must contain a mapping")
    return data


def _coerce(name: str, value):
    if name == "max_upload_bytes":
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"max_upload_bytes must be an integer, got {value!r}") from e
    if name in ("allowed_extensions", "cors_origins"):
        if isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        return tuple(value)
    if name == "log_file" and value == "":
        return None
    if name in ("log_level", "fallback_encoding"):
        if not isinstance(value, str):
            raise ConfigValidationError(f"{name} must be a string, got {value!r}")
    return value


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Build Settings from ``path`` (or the default file, when present) plus
    environment overrides.
    """
    data = {}
    settings_path = Path(path) if path else DEFAULT_SETTINGS_FILE
    if path and not settings_path.exists():
        raise ConfigValidationError(f"Settings file not found: {settings_path}")
    if settings_path.exists():
        data.update(_read_yaml(settings_path))

    known = {f.name for f in fields(Settings)}
    unknown = set(data) - known
    if unknown:
        raise ConfigValidationError(f"Unknown settings keys: {', '.join(sorted(unknown))}")

    for name in known:
        env_value = os.getenv(ENV_PREFIX + name.upper())
        if env_value is not None:
            data[name] = env_value

    values = {name: _coerce(name, value) for name, value in data.items()}
    return Settings(**values).validate()
