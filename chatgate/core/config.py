"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

The CAPTCHA secret and the upstream API key are required. A missing value
fails validation at startup instead of letting traffic through unverified.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_captcha_settings() -> "CaptchaSettings":
    return CaptchaSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Upstream completion provider configuration.

    Any OpenAI-compatible chat completions endpoint works; point
    ``LLM_BASE_URL`` at the gateway in use.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (only openai-compatible endpoints are supported)",
    )
    model: str = Field(
        ...,
        description="Model identifier sent with every completion request",
    )
    api_key: str = Field(
        ...,
        min_length=1,
        description="Bearer credential for the completion endpoint",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint for OpenAI-compatible gateways",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        500,
        ge=1,
        description="Maximum output tokens per completion",
    )
    temperature: float = Field(
        0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat replies",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class CaptchaSettings(BaseSettings):
    """Human-verification (hCaptcha / Turnstile) configuration."""

    secret_key: str = Field(
        ...,
        min_length=1,
        description="Server-side secret used to verify CAPTCHA tokens",
    )
    verify_url: str = Field(
        "https://api.hcaptcha.com/siteverify",
        description="Siteverify endpoint (hCaptcha or Cloudflare Turnstile)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout for the siteverify call in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="CAPTCHA_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_requests: int = Field(
        10,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: float = Field(
        300.0,
        description="Interval between expired-entry sweeps of the rate limit store",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on every chat response",
    )
    captcha_rate_limit_requests: int = Field(
        20,
        description="Maximum standalone CAPTCHA verifications per window (per client)",
        ge=1,
    )

    max_message_chars: int = Field(
        2000,
        description="Maximum chat message length after normalization",
        ge=1,
    )
    max_history_items: int = Field(
        20,
        description="Maximum conversation history turns accepted per request",
        ge=0,
    )
    forwarded_history_turns: int = Field(
        8,
        description="Trailing history turns forwarded to the upstream model",
        ge=0,
    )
    max_body_bytes: int = Field(
        65536,
        description="Maximum raw request body size in bytes",
        ge=1,
    )
    injection_threshold: int = Field(
        3,
        description="Accumulated heuristic score at which a message is rejected",
        ge=1,
    )

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Origins allowed to call the public endpoints",
    )
    cors_allowed_origin_regex: str | None = Field(
        None,
        description="Optional regex for additional allowed origins (e.g. preview domains)",
    )

    audit_backend: str = Field(
        "memory",
        description="CAPTCHA audit store backend: memory or jsonl",
    )
    audit_file_path: str = Field(
        "logs/captcha_audit.jsonl",
        description="Path of the JSON Lines audit file when audit_backend=jsonl",
    )

    spam_alert_threshold_percent: float = Field(
        20.0,
        description="CAPTCHA failure percentage that raises a spam alert",
        ge=0,
        le=100,
    )
    spam_alert_min_attempts: int = Field(
        5,
        description="Minimum attempts in the window before the spam rate is meaningful",
        ge=1,
    )
    spam_alert_window_hours: int = Field(
        24,
        description="Look-back window for the spam rate in hours",
        ge=1,
    )
    spam_check_interval_seconds: float = Field(
        3600.0,
        description="Interval between spam-rate checks of the audit log",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate log file at this size (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Header carrying the request id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    captcha: CaptchaSettings = Field(default_factory=_build_captcha_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
