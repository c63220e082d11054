"""Settings loaded from the environment (and a .env file when present)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    db_path: str = "data/portfolio.db"
    db_encryption_key: str | None = None
    user_id: str = "local"
    brapi_base_url: str = "https://brapi.dev/api"
    brapi_token: str | None = None
    brapi_timeout: int = 30
    brapi_max_attempts: int = 3
    quote_ttl_seconds: float = 60.0
    known_assets_ttl_seconds: float = 300.0

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is not a positive number
        """
        if dotenv:
            load_dotenv()

        return cls(
            db_path=os.getenv("DB_PATH", cls.db_path),
            db_encryption_key=os.getenv("DB_ENCRYPTION_KEY") or None,
            user_id=os.getenv("INVESTFOLIO_USER_ID", cls.user_id),
            brapi_base_url=os.getenv("BRAPI_BASE_URL", cls.brapi_base_url),
            brapi_token=os.getenv("BRAPI_TOKEN") or None,
            brapi_timeout=_env_number("BRAPI_TIMEOUT", cls.brapi_timeout, int),
            brapi_max_attempts=_env_number(
                "BRAPI_MAX_ATTEMPTS", cls.brapi_max_attempts, int
            ),
            quote_ttl_seconds=_env_number(
                "QUOTE_TTL_SECONDS", cls.quote_ttl_seconds, float
            ),
            known_assets_ttl_seconds=_env_number(
                "KNOWN_ASSETS_TTL_SECONDS", cls.known_assets_ttl_seconds, float
            ),
        )
