"""
XenoCanto Proxy: Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       The allowed-origin list and the upstream credential are fixed for the
       lifetime of the process, so they belong here rather than in code.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST provide XENO_CANTO_API_KEY.
    """

    # ── Upstream (xeno-canto) ─────────────────────────────────────────────
    # What: Credential appended to every upstream call as the `key` parameter
    # Required: YES. Injected by the hosting platform at deploy time.
    xeno_canto_api_key: str = Field(
        default="",
        description="xeno-canto API v3 key",
    )

    upstream_base_url: str = Field(default="https://xeno-canto.org/api/3/recordings")

    # What: Quality grade appended to every species query (q:A)
    upstream_quality: str = Field(default="A", min_length=1, max_length=1)

    # None = no client-side timeout; a hung call is bounded by the host
    upstream_timeout: Optional[float] = Field(default=None, gt=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated origins. The FIRST entry is the fallback value
    # echoed to disallowed or absent origins.
    allowed_origins: str = Field(
        default="https://bryancraven.github.io,http://localhost,http://127.0.0.1,null"
    )

    # What: Origin sent by browsers for pages opened from file://
    local_origin_token: str = Field(default="null")

    @field_validator("allowed_origins")
    @classmethod
    def validate_allowed_origins(cls, v: str) -> str:
        """Rejects a list with no usable entries (there must be a default)."""
        if not [origin for origin in v.split(",") if origin.strip()]:
            raise ValueError("allowed_origins must contain at least one origin")
        return v

    @property
    def allowed_origins_list(self) -> Tuple[str, ...]:
        """
        What: Splits comma-separated origins into an ordered, immutable tuple.
        """
        return tuple(
            origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()
        )

    # ── Edge Cache ────────────────────────────────────────────────────────
    # Synthetic authority for cache keys; never dereferenced
    cache_key_authority: str = Field(default="https://cache.local")

    # Browser cache: 24 hours. Edge cache: 7 days. Independent of each other.
    browser_cache_max_age: int = Field(default=86_400, ge=0)
    edge_cache_ttl: int = Field(default=604_800, ge=1)

    # What: Capacity of the in-process store standing in for the platform cache
    edge_cache_max_entries: int = Field(default=10_000, ge=1, le=1_000_000)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        Why:   Fail fast with clear error messages instead of a stream of
               upstream 500s with no obvious cause.
        """
        errors = []
        if not self.xeno_canto_api_key:
            errors.append(
                "XENO_CANTO_API_KEY is not set. "
                "Request a key from your xeno-canto account page."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
