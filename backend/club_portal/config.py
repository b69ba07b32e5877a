"""
Application settings.

All values come from environment variables so the same build can run
locally (SQLite) and in Docker (PostgreSQL). Routes receive settings through
the `get_settings` dependency, which tests override.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

DEFAULT_MENTORS = "Kaushik,Meghraj,Shailesh,Darshan"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the portal."""
    database_url: str = "sqlite:///./club_portal.db"
    log_level: str = "INFO"
    admin_email: str = "admin@ethicraft.com"
    admin_password: str = "change-me"
    secret_key: str = "dev-secret-key"
    mentors: List[str] = field(default_factory=lambda: _split_csv(DEFAULT_MENTORS))
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """Build a Settings object from the current environment."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./club_portal.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        admin_email=os.getenv("ADMIN_EMAIL", "admin@ethicraft.com"),
        admin_password=os.getenv("ADMIN_PASSWORD", "change-me"),
        secret_key=os.getenv("SECRET_KEY", "dev-secret-key"),
        mentors=_split_csv(os.getenv("MENTORS", DEFAULT_MENTORS)),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
    )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return load_settings()
