"""
Frame Relay Configuration
=========================

This module handles configuration loading for the frame relay client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    FRAME_RELAY_RECONNECT_DELAY     -> connection.reconnect_delay_seconds
    FRAME_RELAY_HEARTBEAT_INTERVAL  -> connection.heartbeat_interval_seconds
    FRAME_RELAY_MAX_IMAGE_BYTES     -> imaging.max_image_bytes
    FRAME_RELAY_THROTTLE_MS         -> imaging.throttle_ms
    FRAME_RELAY_BACKEND             -> imaging.backend
    FRAME_RELAY_LOG_LEVEL           -> logging.level

Example:
    from frame_relay.config import get_settings

    settings = get_settings()
    print(settings.connection.reconnect_delay_seconds)
    print(settings.imaging.max_image_bytes)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ConnectionConfig(BaseModel):
    """Controller connection configuration."""

    reconnect_delay_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Fixed wait before re-attempting a lost connection",
    )
    heartbeat_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Period of the application-level heartbeat message",
    )
    ping_interval_seconds: Optional[float] = Field(
        default=20.0,
        description="WebSocket protocol ping interval (None disables pings)",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the opening handshake",
    )


class ImagingConfig(BaseModel):
    """Frame encoding and throttling configuration."""

    max_image_bytes: int = Field(
        default=200 * 1024,
        ge=1,
        description="Byte budget for a single encoded frame",
    )
    throttle_ms: int = Field(
        default=800,
        ge=0,
        description="Minimum time between two frame sends (milliseconds)",
    )
    initial_scale: float = Field(default=1.0, gt=0, le=1.0)
    initial_quality: float = Field(default=0.92, ge=0, le=1.0)
    scale_candidates: List[float] = Field(
        default_factory=lambda: [1.0, 0.9, 0.8, 0.7, 0.6, 0.5],
        description="Scales tried by the budget search, in order",
    )
    quality_candidates: List[float] = Field(
        default_factory=lambda: [
            0.92, 0.85, 0.78, 0.72, 0.66, 0.6,
            0.55, 0.5, 0.45, 0.4, 0.35, 0.3,
        ],
        description="JPEG qualities tried per scale, in order",
    )
    backend: str = Field(
        default="opencv",
        description="Capability backend: 'opencv' or 'pillow'",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the frame relay client.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    imaging: ImagingConfig = Field(default_factory=ImagingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("frame_relay.yaml"),
            Path("config.yaml"),
            Path("config.yml"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Connection settings
    if env_delay := os.environ.get("FRAME_RELAY_RECONNECT_DELAY"):
        config_data.setdefault("connection", {})["reconnect_delay_seconds"] = float(env_delay)
    if env_hb := os.environ.get("FRAME_RELAY_HEARTBEAT_INTERVAL"):
        config_data.setdefault("connection", {})["heartbeat_interval_seconds"] = float(env_hb)

    # Imaging settings
    if env_bytes := os.environ.get("FRAME_RELAY_MAX_IMAGE_BYTES"):
        config_data.setdefault("imaging", {})["max_image_bytes"] = int(env_bytes)
    if env_throttle := os.environ.get("FRAME_RELAY_THROTTLE_MS"):
        config_data.setdefault("imaging", {})["throttle_ms"] = int(env_throttle)
    if env_backend := os.environ.get("FRAME_RELAY_BACKEND"):
        config_data.setdefault("imaging", {})["backend"] = env_backend

    # Logging settings
    if env_log := os.environ.get("FRAME_RELAY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Settings Accessor
# =============================================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings
