"""Service configuration loaded from SQLSANDBOX_* environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class SandboxSettings(BaseSettings):
    """SQL sandbox settings.

    All fields are read from environment variables with the ``SQLSANDBOX_``
    prefix.  For example, ``SQLSANDBOX_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLSANDBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Infrastructure --------------------------------------------------------
    database_url: str | None = None
    """PostgreSQL connection string (psycopg) for the metadata store."""

    sandbox_database_url: str | None = None
    """Connection string used for workspace namespaces and user SQL.

    Falls back to ``database_url`` when unset.  Production deployments should
    log in as a role with no privileges on ``sandbox_meta``: the namespace
    ``search_path`` only scopes unqualified names, so qualified names in user
    SQL reach whatever this role can reach.
    """

    redis_url: str | None = None
    """Redis connection string.  Query rate limiting is disabled without it."""

    # -- Limits ----------------------------------------------------------------
    query_rate_limit: int = 60
    """Maximum executed queries per workspace per window."""

    query_rate_window: int = 60
    """Rate limit window in seconds."""

    history_limit: int = 100
    """Query history entries kept per workspace (oldest dropped first)."""

    # -- Server ----------------------------------------------------------------
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # -- Helpers ---------------------------------------------------------------

    def resolve_sandbox_url(self) -> str | None:
        return self.sandbox_database_url or self.database_url

    @property
    def sandbox_shares_metadata(self) -> bool:
        """True when user SQL runs with the metadata store's credentials."""
        return self.resolve_sandbox_url() == self.database_url


def get_settings() -> SandboxSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> SandboxSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return SandboxSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
