"""Messenger configuration with Pydantic models.

- Load from YAML file
- Override with environment variables
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = Field("0.0.0.0", description="Server bind address")
    port: int = Field(3000, description="Server port")


class CorsConfig(BaseModel):
    """CORS configuration."""
    origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Allowed origins for CORS",
    )
    allow_credentials: bool = Field(True, description="Allow credentials")


class RealtimeConfig(BaseModel):
    """Connection registry and fan-out settings."""
    max_pending_events: int = Field(
        256,
        ge=1,
        description="Outbound events buffered per connection before new ones are dropped",
    )
    max_user_id_length: int = Field(
        64, ge=1, description="Longest userId accepted at WebSocket admission"
    )


class RateLimitConfig(BaseModel):
    """slowapi limit strings for write-heavy endpoints."""
    friend_requests: str = Field("30/minute", description="POST /friends/send")
    conversations: str = Field("20/minute", description="POST /conversations/create")


class AppConfig(BaseModel):
    """Application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


def _default_config_path() -> Path:
    return Path(__file__).resolve().parents[2] / "config.yaml"


def load_config(path: Optional[Path | str] = None) -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Environment variables take precedence over YAML values:
    - MESSENGER_CONFIG: Path to the YAML file (when `path` is not given)
    - MESSENGER_HOST / MESSENGER_PORT: Bind address
    - MESSENGER_CORS_ORIGINS: Comma-separated allowed origins
    - MESSENGER_MAX_PENDING_EVENTS: Per-connection outbound buffer size
    """
    if path is None and (env_path := os.environ.get("MESSENGER_CONFIG")):
        path = env_path
    config_path = Path(path) if path is not None else _default_config_path()

    if not config_path.is_file():
        config = AppConfig()
    else:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config at {config_path} must be a mapping.")
        try:
            config = AppConfig.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc

    if host := os.environ.get("MESSENGER_HOST"):
        config.server.host = host
    if port := os.environ.get("MESSENGER_PORT"):
        config.server.port = int(port)
    if origins := os.environ.get("MESSENGER_CORS_ORIGINS"):
        config.cors.origins = [o.strip() for o in origins.split(",") if o.strip()]
    if pending := os.environ.get("MESSENGER_MAX_PENDING_EVENTS"):
        config.realtime.max_pending_events = int(pending)

    return config
