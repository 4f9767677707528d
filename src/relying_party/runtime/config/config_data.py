"""Typed view of ``config.yaml``.

Each section of the file maps onto one model below; ``ConfigData`` is the
root under the top-level ``config:`` key.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field, computed_field


class RedisConfig(BaseModel):
    """Optional Redis session store."""

    enabled: bool = Field(default=False, description="Use Redis as the session store")
    url: str = Field(default="", description="redis:// or rediss:// URL")
    password: str | None = Field(
        default=None, description="Password added to the URL when it has none"
    )
    decode_responses: bool = Field(
        default=True, description="Return str instead of bytes from Redis"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """``url`` with ``password`` filled in, unless the URL carries credentials."""
        parts = urlsplit(self.url)
        if not self.password or not parts.scheme or "@" in parts.netloc:
            return self.url
        return urlunsplit(parts._replace(netloc=f":{self.password}@{parts.netloc}"))


class OpenIDProviderConfig(BaseModel):
    """OpenID 2.0 provider and the URLs it sends visitors back to."""

    name: str = Field(default="steam", description="Provider display name")
    provider_url: str = Field(
        default="https://steamcommunity.com/openid",
        description="OP identifier URL used for discovery",
    )
    return_url: str = Field(
        default="http://localhost:4000/auth/return",
        description="URL the provider sends the visitor back to after login",
    )
    realm: str = Field(
        default="http://localhost:4000/",
        description="Realm (trust root) the assertion is valid for",
    )
    stateless: bool = Field(
        default=True,
        description="Verify assertions with the provider instead of keeping associations",
    )
    sign_in_image: str = Field(
        default=(
            "https://steamcommunity-a.akamaihd.net/public/images/"
            "signinthroughsteam/sits_small.png"
        ),
        description="Image used for the sign-in button",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Minimum level for all sinks")
    format: Literal["json", "plain"] = Field(
        default="json", description="File sink format"
    )
    file: str | None = Field(
        default="logs/app.log", description="Log file path; empty disables the file sink"
    )
    max_size_mb: int = Field(default=10, description="Rotate the file at this size")
    backup_count: int = Field(default=5, description="Rotated files to keep")


class AppConfig(BaseModel):
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Deployment environment"
    )
    host: str = Field(default="localhost", description="Interface to bind")
    port: int = Field(default=4000, description="Port to listen on")
    session_max_age: int = Field(
        default=86400, description="Session lifetime in seconds"
    )
    session_reap_interval: int = Field(
        default=600, description="Seconds between expired session cleanups"
    )
    session_signing_secret: str | None = Field(
        default=None, description="HMAC key for the session cookie"
    )


class SecurityConfig(BaseModel):
    """Session cookie attributes."""

    session_cookie_name: str = Field(
        default="session_id", description="Name of the session cookie"
    )
    secure_cookies: bool = Field(
        default=True, description="Mark the cookie Secure in production"
    )
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite attribute; the provider return needs lax"
    )
    rotate_session_on_login: bool = Field(
        default=True, description="Issue a new session key after a successful login"
    )


class ConfigData(BaseModel):
    """Root of the ``config:`` section."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    openid: OpenIDProviderConfig = Field(default_factory=OpenIDProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
