"""Environment-driven settings for the API, CLI, and completion client."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_MISTRAL_KEY_FILE = Path(".api_keys/Mistral.md")
DEFAULT_DB_PATH = Path(".innovative_sphere/catalog.db")
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _read_key_file(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8").strip() or None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration. Build with :meth:`from_env` outside of tests."""

    mistral_api_key: str | None = None
    mistral_api_url: str = "https://api.mistral.ai/v1"
    mistral_model: str = "mistral-small-latest"
    max_tokens: int = 2000
    upstream_timeout: float = 30.0
    upstream_max_attempts: int = 3
    upstream_retry_delay: float = 1.0
    db_path: Path = DEFAULT_DB_PATH
    validate_catalog: bool = True
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    allowed_origins: list[str] = ["*"]

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from the environment.

        ``MISTRAL_API_KEY`` wins over the key file named by
        ``MISTRAL_API_KEY_FILE`` (``.api_keys/Mistral.md`` when unset).
        """
        origins = os.getenv("ALLOWED_ORIGINS", "*")
        key_file = Path(os.getenv("MISTRAL_API_KEY_FILE", str(DEFAULT_MISTRAL_KEY_FILE)))
        return cls(
            mistral_api_key=(os.getenv("MISTRAL_API_KEY") or "").strip() or _read_key_file(key_file),
            mistral_api_url=os.getenv("MISTRAL_API_URL", "https://api.mistral.ai/v1"),
            mistral_model=os.getenv("MISTRAL_MODEL", "mistral-small-latest"),
            max_tokens=int(os.getenv("MISTRAL_MAX_TOKENS", "2000")),
            upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30")),
            upstream_max_attempts=int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "3")),
            upstream_retry_delay=float(os.getenv("UPSTREAM_RETRY_DELAY_SECONDS", "1.0")),
            db_path=Path(os.getenv("INNOVATIVE_SPHERE_DB", str(DEFAULT_DB_PATH))),
            validate_catalog=_env_bool("VALIDATE_CATALOG", True),
            environment=os.getenv("APP_ENV", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
            allowed_origins=[item.strip() for item in origins.split(",") if item.strip()] or ["*"],
        )
