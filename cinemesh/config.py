"""
Configuration management for Cinemesh.

Loads configuration from environment variables and provides
a centralized Config dataclass for all settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_ALLOWED_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]


def parse_allowed_origins(value: Optional[str]) -> List[str]:
    """Split a comma-separated origin list, falling back to the local frontends."""
    origins = [o.strip() for o in (value or "").split(",") if o.strip()]
    return origins or list(DEFAULT_ALLOWED_ORIGINS)


def load_env(env_path: Optional[str] = None) -> None:
    """Load env_path, or the nearest .env above the working directory."""
    load_dotenv(env_path or find_dotenv(usecwd=True))


def load_allowed_origins(env_path: Optional[str] = None) -> List[str]:
    """
    CORS origins from ALLOWED_ORIGINS.

    Needs no database settings, so the app can install its CORS
    middleware at import time.
    """
    load_env(env_path)
    return parse_allowed_origins(os.getenv("ALLOWED_ORIGINS"))


def _positive_int(value: Optional[str], default: int) -> int:
    """Parse a positive integer, falling back to default on anything else."""
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass
class Config:
    """Centralized configuration from environment variables."""

    # Database
    db_user: str
    db_name: str
    db_host: str = "localhost"
    db_port: int = 3306
    db_password: str = ""

    # TMDb API
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_rate_limit: int = 35
    tmdb_timeout: int = 10
    max_cast_members: int = 10  # Top N billed cast imported per movie

    # JWT settings
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 24

    # Server settings
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    base_url: str = "http://localhost:8080"

    # CORS settings
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    # Seeding
    seed_data: bool = False
    admin_email: str = "admin@cinemesh.com"
    admin_password: str = ""

    # Paths
    log_dir: Path = field(default_factory=lambda: Path.cwd() / "logs")

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_path: Optional path to .env file. If not provided,
                     looks for .env in the current directory.

        Returns:
            Config instance with loaded values.

        Raises:
            ValueError: If required environment variables are missing.
        """
        load_env(env_path)

        db_user = os.getenv("DB_USER", "")
        db_name = os.getenv("DB_NAME", "")
        if not db_user or not db_name:
            raise ValueError("DB_USER and DB_NAME environment variables are required")

        return cls(
            db_user=db_user,
            db_name=db_name,
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=int(os.getenv("DB_PORT", "3306")),
            db_password=os.getenv("DB_PASSWORD", ""),
            tmdb_api_key=os.getenv("TMDB_API_KEY", ""),
            tmdb_base_url=os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3"),
            tmdb_rate_limit=_positive_int(os.getenv("TMDB_RATE_LIMIT"), 35),
            max_cast_members=_positive_int(os.getenv("TMDB_MAX_CAST"), 10),
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_expires_hours=_positive_int(os.getenv("JWT_EXPIRES_HOURS"), 24),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("PORT", "8080")),
            base_url=os.getenv("BASE_URL", "http://localhost:8080"),
            allowed_origins=parse_allowed_origins(os.getenv("ALLOWED_ORIGINS")),
            seed_data=os.getenv("SEED_DATA", "false").lower() == "true",
            admin_email=os.getenv("ADMIN_EMAIL", "admin@cinemesh.com"),
            admin_password=os.getenv("ADMIN_PASSWORD", ""),
            log_dir=Path(os.getenv("LOG_DIR", str(Path.cwd() / "logs"))),
        )

    def get_db_url(self) -> str:
        """Get SQLAlchemy database URL."""
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    def masked_api_key(self) -> str:
        """Return the TMDb API key with only its ends visible, for logs."""
        key = self.tmdb_api_key
        if not key:
            return ""
        if len(key) < 8:
            return "*" * len(key)
        return f"{key[:4]}...{key[-4:]}"
