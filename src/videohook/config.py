"""Configuration management using Pydantic Settings.

All config is loaded from environment variables with the VIDEOHOOK_ prefix.
Webhook secrets and the Stream API token MUST be provided via env vars
(never hardcoded).
"""

from __future__ import annotations

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class VideohookConfig(BaseSettings):
    """Application configuration loaded from environment variables.

    All fields prefixed with VIDEOHOOK_ in the environment.
    Example: VIDEOHOOK_STREAM_WEBHOOK_SECRET -> stream_webhook_secret
    """

    model_config = ConfigDict(
        env_prefix="VIDEOHOOK_",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    # --- Webhook secrets ---
    stream_webhook_secret: str = Field(description="Signing secret for Stream webhooks (POST /stream)")
    auth0_webhook_secret: str = Field(
        description="Signing secret for Auth0 first-login webhooks (POST /auth0/stream-worker)"
    )

    # --- Stream API ---
    stream_account_id: str = Field(description="Stream account identifier")
    stream_api_token: str = Field(description="Bearer token for the Stream API")
    stream_api_base: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Stream API base URL",
    )
    stream_api_timeout: float = Field(default=10.0, description="Stream API request timeout (seconds)")

    # --- Video caches ---
    catalog_fetch_limit: int = Field(
        default=10,
        description="Number of ready videos fetched when the catalog cache is rebuilt",
    )
    catalog_cache_key: str = Field(default="latest", description="Cache key of the latest-videos list")
    feature_tag: str = Field(
        default="featured",
        description="Tag a video name must contain to belong to the feature cache",
    )
    feature_cache_key: str = Field(default="featured", description="Cache key of the feature video list")

    # --- Redis ---
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for idempotency records and video caches",
    )
    idempotency_ttl_seconds: int = Field(
        default=0,
        description="Expiry of idempotency records in seconds (0 keeps them forever)",
    )

    # --- Signature envelope ---
    signature_header: str = Field(default="Webhook-Signature", description="Header carrying the signature")
    signature_tolerance_seconds: int = Field(
        default=0,
        description="Reject signatures whose timestamp is older than this (0 disables the check)",
    )
    max_payload_bytes: int = Field(default=1024 * 1024, description="Maximum accepted webhook body size")

    # --- User storage actors ---
    user_actor_url: str = Field(
        default="http://localhost:8787/users",
        description="Base URL of the per-user storage actor namespace",
    )
    user_actor_timeout: float = Field(default=10.0, description="Storage actor request timeout (seconds)")
    user_jurisdiction: str = Field(
        default="eu",
        description="Data-residency jurisdiction new user actors are allocated in",
    )

    # --- Server ---
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8000, description="Server bind port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log output format: 'text' or 'json'")


def load_config() -> VideohookConfig:
    """Load and validate configuration from environment."""
    return VideohookConfig()  # type: ignore[call-arg]
