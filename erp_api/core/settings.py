from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from erp_api.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="ERP API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for a multi-tenant ERP platform. Provides tenant-scoped "
            "resource collections behind a revocable session-token authority."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # Environment label; PRODUCTION switches cookie hardening on
    ENVIRONMENT: str = Field(default="DEVELOPMENT", description="DEVELOPMENT or PRODUCTION")
    LOG_LEVEL: str = Field(default="INFO")

    # Token signing
    APP_SECRET: str = Field(..., min_length=10, description="Secret used to sign session tokens")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRES_IN: str = Field(
        default="2d", description="Session lifetime, e.g. '2d', '12h', '30m', '45s' or seconds"
    )

    # Session cookie
    AUTH_COOKIE_NAME: Optional[str] = Field(
        default=None,
        description="Override for the session cookie name. Default depends on ENVIRONMENT.",
    )
    AUTH_CLEAR_COOKIE_ON_REVOKE: bool = Field(
        default=True,
        description="Clear the session cookie when a revoked or expired token is presented.",
    )
    AUTH_ACCEPT_BEARER: bool = Field(
        default=False,
        description="Also accept the token from an 'Authorization: Bearer' header.",
    )

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=False,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    SWEEP_TOKENS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, invalidate expired token records at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed the bootstrap tenant, admin user and sample geography at startup.",
    )

    # Bootstrap data
    SEED_TENANT_NAME: str = Field(default="Default")
    SEED_ADMIN_USERNAME: str = Field(default="admin")
    SEED_ADMIN_PASSWORD: Optional[str] = Field(
        default=None, description="Admin password; the admin user is only seeded when set."
    )

    # Automatically load from .env at runtime. The orchestrator will provide these.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def _normalize_environment(cls, v):
        return (v or "DEVELOPMENT").strip().upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "PRODUCTION"

    @property
    def session_cookie_name(self) -> str:
        """Cookie name, hardened with the __Host- prefix in production."""
        if self.AUTH_COOKIE_NAME:
            return self.AUTH_COOKIE_NAME
        return "__Host-erp-access" if self.is_production else "erp-access"

    @property
    def session_cookie_options(self) -> Dict[str, Any]:
        """Attributes shared by set_cookie and delete_cookie."""
        return {
            "httponly": True,
            "secure": self.is_production,
            "samesite": "none" if self.is_production else "lax",
            "path": "/",
        }


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time. If caching is desired,
      we can add a module-level cache or lru_cache.
    """
    return AppSettings()
