# fieldops/core/config.py

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    Hosted Postgres connection strings usually carry both, and SQLAlchemy
    would forward them to asyncpg.connect():
      TypeError: connect() got an unexpected keyword argument 'sslmode'
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"

    # -----------------------------
    # DB
    # -----------------------------
    DATABASE_URL_ASYNC: str
    DATABASE_URL_SYNC: str

    # -----------------------------
    # JWT (tokens issued by the hosted auth provider)
    # -----------------------------
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    # Empty string disables audience verification.
    JWT_AUDIENCE: str = "authenticated"

    # -----------------------------
    # Logging
    # -----------------------------
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    LOG_FILE: str | None = None

    # -----------------------------
    # HTTP
    # -----------------------------
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # -----------------------------
    # Feature gating
    # -----------------------------
    # org feature flags: served as-is while younger than STALE, dropped after EXPIRE
    FEATURE_CACHE_STALE_SECONDS: int = 10 * 60
    FEATURE_CACHE_EXPIRE_SECONDS: int = 30 * 60

    QUICK_ADD_FREE_TIER_LIMIT: int = 2

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    @property
    def is_production(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() in {"staging", "production"}

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        # Enforce that we never run staging/production with a placeholder secret.
        if self.is_production:
            if not self.JWT_SECRET or self.JWT_SECRET.strip() == "dev-secret-change-me":
                raise ValueError("JWT_SECRET must be set to a strong value in staging/production.")
            if len(self.JWT_SECRET.strip()) < 32:
                raise ValueError("JWT_SECRET is too short; use at least 32 characters in staging/production.")

        # Light sanity checks (all envs)
        if self.JWT_ALGORITHM not in {"HS256"}:
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")

        if self.FEATURE_CACHE_STALE_SECONDS <= 0:
            raise ValueError("FEATURE_CACHE_STALE_SECONDS must be positive.")
        if self.FEATURE_CACHE_EXPIRE_SECONDS < self.FEATURE_CACHE_STALE_SECONDS:
            raise ValueError("FEATURE_CACHE_EXPIRE_SECONDS must be >= FEATURE_CACHE_STALE_SECONDS.")
        if self.QUICK_ADD_FREE_TIER_LIMIT < 0:
            raise ValueError("QUICK_ADD_FREE_TIER_LIMIT must not be negative.")


settings = Settings()
