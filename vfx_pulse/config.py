"""YAML config loader + Pydantic models."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

_DEFAULT_CONFIG = Path(__file__).parent / "config.default.yaml"

PRODUCTION_DATA_DIR = Path("/tmp/vfx_pulse/data")


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001


class SourceConfig(BaseModel):
    kind: Literal["feed", "backstage"] = "feed"
    url: Optional[str] = None
    timeout: float = 15
    enabled: bool = True


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    environment: str = "development"
    data_dir: Optional[Path] = None
    retrieval_timeout: float = Field(default=60, gt=0)
    sources: dict[str, SourceConfig] = Field(default_factory=dict)

    @property
    def resolved_data_dir(self) -> Path:
        if self.data_dir is not None:
            return self.data_dir
        return PRODUCTION_DATA_DIR if self.environment == "production" else Path.cwd() / "data"


def load_config(
    config_path: Optional[Path] = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load config from YAML, falling back to defaults, then apply env overrides."""
    env = os.environ if environ is None else environ

    with open(_DEFAULT_CONFIG) as f:
        data = yaml.safe_load(f)

    if config_path is None and env.get("VFX_PULSE_CONFIG"):
        config_path = Path(env["VFX_PULSE_CONFIG"])
    if config_path and config_path.exists():
        with open(config_path) as f:
            overrides = yaml.safe_load(f) or {}
        _deep_merge(data, overrides)

    _apply_env(data, env)
    return AppConfig.model_validate(data)


def _apply_env(data: dict, env: Mapping[str, str]) -> None:
    if env.get("VFX_PULSE_ENV"):
        data["environment"] = env["VFX_PULSE_ENV"].strip()
    if env.get("VFX_PULSE_DATA_DIR"):
        data["data_dir"] = env["VFX_PULSE_DATA_DIR"].strip()
    if env.get("PORT"):
        data.setdefault("server", {})["port"] = int(env["PORT"])


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base
