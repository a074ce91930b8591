"""TOML settings: ``$BTCTL_CONFIG`` or the per-user config file, else defaults."""

from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, expand_path

CONFIG_ENV_VAR = "BTCTL_CONFIG"

DEFAULT_ADAPTER_PATH = "/org/bluez/hci0"
MIN_SCAN_DURATION = 1
MAX_SCAN_DURATION = 60


class AdapterConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = DEFAULT_ADAPTER_PATH
    call_timeout: float = Field(default=10.0, gt=0)


class ScanningConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    duration: int = Field(default=5, ge=MIN_SCAN_DURATION, le=MAX_SCAN_DURATION)
    tick_interval: float = Field(default=0.5, gt=0, le=5)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    adapter: AdapterConfig = Field(default_factory=AdapterConfig)
    scanning: ScanningConfig = Field(default_factory=ScanningConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    """Return ``(path, exists)``; an override pointing nowhere is an error."""
    override = os.environ.get(CONFIG_ENV_VAR)
    path = expand_path(override) if override else default_config_path()
    exists = path.is_file()
    if override and not exists and not allow_missing:
        raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
    return path, exists


def _describe(exc: ValidationError) -> str:
    return "\n".join(
        f"  {'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def load_settings(path: Path) -> Settings:
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file {path}: {exc}") from exc

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid config file {path}:\n{_describe(exc)}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path()
    return load_settings(path) if exists else Settings()


def _toml_value(value: object) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


def render_settings_toml(settings: Settings) -> str:
    lines = ["# btctl configuration"]
    for section, values in settings.model_dump().items():
        lines += ["", f"[{section}]"]
        lines += [f"{key} = {_toml_value(value)}" for key, value in values.items()]
    return "\n".join(lines) + "\n"


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
