"""REST API configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from foliosync.shared.constants import NetworkConfig


class APISettings(BaseModel):
    """Backend API configuration.

    Collections live under ``{base_url}{prefix}/{resource}``; single records
    under ``{base_url}{prefix}/{resource}/{id}``.
    """

    base_url: str = Field(
        default=NetworkConfig.DEFAULT_BASE_URL,
        min_length=8,
        description="Base URL of the portfolio backend",
    )
    prefix: str = Field(
        default=NetworkConfig.DEFAULT_API_PREFIX,
        description="Path prefix of the collection endpoints",
    )
    timeout_seconds: float = Field(
        default=NetworkConfig.DEFAULT_TIMEOUT,
        gt=0,
        description="Total timeout per request (seconds)",
    )
    user_agent: str = Field(
        default=NetworkConfig.USER_AGENT,
        min_length=1,
        description="User-Agent header",
    )
    session_cookie: str | None = Field(
        default=None,
        description="Admin session cookie forwarded with every request",
        repr=False,
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value


__all__ = ["APISettings"]
