"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates the cache layout and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from urllib.parse import urljoin, urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sw.types import CacheNamespace, CacheRole


class Settings(BaseSettings):
    """Worker settings loaded from environment variables.

    Cache layout:
        CACHE_VERSION: Version tag prefixed to every namespace; bumping it is
            the only migration mechanism.
        SHELL_ASSETS: Paths primed into the static namespace at install.
        CONFIG_PATH / CONFIG_SUFFIX: The site configuration file and the
            suffix that routes requests to stale-while-revalidate.
        NAVIGATION_FALLBACK: Cached document served to offline navigations.

    Maintenance:
        DYNAMIC_CACHE_LIMIT / IMAGE_CACHE_LIMIT: Trim caps per namespace.
        TRIM_INTERVAL_SECONDS: Period of the trim timer.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_VERSION: str = Field(default="wedding-v2", description="Cache version tag")
    ORIGIN: str = Field(
        default="http://localhost:3000",
        description="Origin the worker is registered on",
    )

    SHELL_ASSETS: list[str] = Field(
        default_factory=lambda: ["/", "/index.html", "/config.yaml", "/sw.js"],
        min_length=1,
        description="Shell assets primed at install, in order",
    )
    CONFIG_PATH: str = Field(default="/config.yaml", description="Site configuration file")
    CONFIG_SUFFIX: str = Field(
        default=".yaml", description="Path suffix served stale-while-revalidate"
    )
    NAVIGATION_FALLBACK: str = Field(
        default="/index.html", description="Document served to offline navigations"
    )

    DYNAMIC_CACHE_LIMIT: int = Field(default=50, ge=1, description="Max dynamic entries")
    IMAGE_CACHE_LIMIT: int = Field(default=30, ge=1, description="Max image entries")
    TRIM_INTERVAL_SECONDS: float = Field(
        default=60 * 60, gt=0, description="Seconds between cache trims"
    )

    UPDATE_MESSAGE: str = Field(
        default="New content available",
        description="Text of the UPDATE_AVAILABLE notification",
    )

    # Host network stack only; strategies impose no timeout of their own
    REQUEST_TIMEOUT: float = Field(default=30.0, gt=0, description="HTTP timeout")

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator("CACHE_VERSION")
    @classmethod
    def validate_cache_version(cls, v: str) -> str:
        """Version tags end up in namespace names."""
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("CACHE_VERSION must be a non-empty tag without whitespace")
        return v

    @field_validator("ORIGIN")
    @classmethod
    def validate_origin(cls, v: str) -> str:
        """ORIGIN must be scheme://host[:port] with no path."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("ORIGIN must be an absolute http(s) origin")
        if parsed.path not in ("", "/") or parsed.query or parsed.fragment:
            raise ValueError("ORIGIN must not carry a path, query or fragment")
        return f"{parsed.scheme}://{parsed.netloc}".lower()

    @model_validator(mode="after")
    def validate_shell_layout(self) -> Settings:
        """The config file and navigation fallback must be primed at install."""
        if not self.CONFIG_PATH.endswith(self.CONFIG_SUFFIX):
            raise ValueError("CONFIG_PATH must end with CONFIG_SUFFIX")
        for name in ("CONFIG_PATH", "NAVIGATION_FALLBACK"):
            if getattr(self, name) not in self.SHELL_ASSETS:
                raise ValueError(f"{name} must be listed in SHELL_ASSETS")
        return self

    def namespace(self, role: CacheRole) -> CacheNamespace:
        """Current-version namespace for a role."""
        return CacheNamespace(version=self.CACHE_VERSION, role=role)

    @property
    def static_namespace(self) -> CacheNamespace:
        return self.namespace(CacheRole.STATIC)

    @property
    def dynamic_namespace(self) -> CacheNamespace:
        return self.namespace(CacheRole.DYNAMIC)

    @property
    def image_namespace(self) -> CacheNamespace:
        return self.namespace(CacheRole.IMAGE)

    @property
    def cache_limits(self) -> dict[CacheNamespace, int]:
        """Bounded namespaces and their trim caps."""
        return {
            self.dynamic_namespace: self.DYNAMIC_CACHE_LIMIT,
            self.image_namespace: self.IMAGE_CACHE_LIMIT,
        }

    def resolve(self, path: str) -> str:
        """Resolve a site path against ORIGIN."""
        return urljoin(self.ORIGIN + "/", path)

    @property
    def shell_urls(self) -> list[str]:
        """Absolute URLs of the shell assets, in install order."""
        return [self.resolve(path) for path in self.SHELL_ASSETS]

    @property
    def config_url(self) -> str:
        return self.resolve(self.CONFIG_PATH)

    @property
    def fallback_url(self) -> str:
        return self.resolve(self.NAVIGATION_FALLBACK)

    def redacted_display(self) -> dict[str, str | int | float | list[str]]:
        """Return settings for display."""
        return {
            "CACHE_VERSION": self.CACHE_VERSION,
            "ORIGIN": self.ORIGIN,
            "SHELL_ASSETS": list(self.SHELL_ASSETS),
            "CONFIG_PATH": self.CONFIG_PATH,
            "CONFIG_SUFFIX": self.CONFIG_SUFFIX,
            "NAVIGATION_FALLBACK": self.NAVIGATION_FALLBACK,
            "DYNAMIC_CACHE_LIMIT": self.DYNAMIC_CACHE_LIMIT,
            "IMAGE_CACHE_LIMIT": self.IMAGE_CACHE_LIMIT,
            "TRIM_INTERVAL_SECONDS": self.TRIM_INTERVAL_SECONDS,
            "UPDATE_MESSAGE": self.UPDATE_MESSAGE,
            "REQUEST_TIMEOUT": self.REQUEST_TIMEOUT,
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
