"""Runtime configuration for flowpulse.

Settings are read from ``config.yaml`` inside the flowpulse home directory
(``~/.flowpulse`` unless FLOWPULSE_HOME is set). Environment variables
override the file:

- FLOWPULSE_BASE_URL / FLOWPULSE_API_KEY: credentials (both required)
- FLOWPULSE_GATEWAY_MODE: "direct" or "relay"
- FLOWPULSE_RELAY_URL: relay base URL used in relay mode

Example config.yaml:

    credentials:
      base_url: https://n8n.example.com
      api_key: n8n_api_...
    gateway:
      mode: direct
      timeout: 30
    insights:
      default_days: 7
    canvas:
      viewport_width: 390
      compact: true
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"


class Credentials(BaseModel):
    """Base URL and API key of one automation server."""

    base_url: str
    api_key: str

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("base_url must not be empty")
        return v

    @field_validator("api_key")
    @classmethod
    def require_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("api_key must not be empty")
        return v


class GatewaySettings(BaseModel):
    mode: Literal["direct", "relay"] = "direct"
    relay_url: str | None = None
    timeout: float = 30.0


class InsightsSettings(BaseModel):
    default_days: Literal[7, 14, 30] = 7


class CanvasSettings(BaseModel):
    viewport_width: int = 390  # Canvas units available for the graph
    compact: bool = True  # Phone-sized viewport: start zoomed out


class Settings(BaseModel):
    credentials: Credentials | None = None
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    insights: InsightsSettings = Field(default_factory=InsightsSettings)
    canvas: CanvasSettings = Field(default_factory=CanvasSettings)


def get_home() -> Path:
    """Directory holding config.yaml."""
    env_home = os.environ.get("FLOWPULSE_HOME")
    if env_home:
        return Path(env_home)
    return Path.home() / ".flowpulse"


def get_config_path() -> Path:
    return get_home() / CONFIG_FILENAME


def read_config_file(path: Path) -> dict:
    """Load the raw YAML mapping, treating a missing or corrupt file as empty."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings from the config file plus environment overrides."""
    path = path or get_config_path()
    data = read_config_file(path)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        logger.warning("Invalid config %s, using defaults: %s", path, e)
        settings = Settings()

    base_url = os.environ.get("FLOWPULSE_BASE_URL")
    api_key = os.environ.get("FLOWPULSE_API_KEY")
    if base_url and api_key:
        settings.credentials = Credentials(base_url=base_url, api_key=api_key)

    mode = os.environ.get("FLOWPULSE_GATEWAY_MODE")
    if mode in ("direct", "relay"):
        settings.gateway.mode = mode
    relay_url = os.environ.get("FLOWPULSE_RELAY_URL")
    if relay_url:
        settings.gateway.relay_url = relay_url

    return settings
