"""
Settings for the Kanban backend and board client.

Values come from environment variables, with an optional .env file loaded
from the working directory. Nothing here is required at import time; the
defaults are good enough for local development.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    # Database
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "kanban"
    db_timeout_ms: int = 5000

    # Auth
    secret_key: str = "dev-secret-key-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    google_client_id: str = ""
    bcrypt_rounds: int = 12

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # Board client
    api_url: str = "http://localhost:8000"
    session_file: Path = Path("~/.config/taskboard/session.json").expanduser()


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    d = Settings()
    return Settings(
        database_url=_env("DATABASE_URL", d.database_url),
        database_name=_env("DATABASE_NAME", d.database_name),
        db_timeout_ms=_env_int("DB_TIMEOUT_MS", d.db_timeout_ms),
        secret_key=_env("SECRET_KEY", d.secret_key),
        jwt_algorithm=_env("JWT_ALGORITHM", d.jwt_algorithm),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", d.access_token_expire_minutes),
        google_client_id=_env("GOOGLE_CLIENT_ID", d.google_client_id),
        bcrypt_rounds=_env_int("BCRYPT_ROUNDS", d.bcrypt_rounds),
        host=_env("HOST", d.host),
        port=_env_int("PORT", d.port),
        cors_origins=_env_list("CORS_ORIGINS", d.cors_origins),
        log_level=_env("LOG_LEVEL", d.log_level).upper(),
        api_url=_env("TASKBOARD_API_URL", d.api_url).rstrip("/"),
        session_file=_env_path("TASKBOARD_SESSION_FILE", d.session_file),
    )


settings = load_settings()
