"""
config.py
---------
Environment based settings. Values come from the process environment,
optionally seeded from a `.env` file in the working directory.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class Settings:
    database_url: str | None = None
    db_driver: str = "mysql+aiomysql"
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "feedback"
    db_pool_size: int = 10
    db_echo: bool = False

    host: str = "0.0.0.0"
    port: int = 4000
    api_base_url: str = ""
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def sqlalchemy_url(self) -> URL:
        """Target database URL: DATABASE_URL if set, otherwise composed from DB_* values."""
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def get_settings() -> Settings:
    """Read settings from the environment."""
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        db_driver=os.getenv("DB_DRIVER", "mysql+aiomysql"),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "3306")),
        db_user=os.getenv("DB_USER", "root"),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_name=os.getenv("DB_NAME", "feedback"),
        db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        db_echo=_env_bool("DB_ECHO"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "4000")),
        api_base_url=os.getenv("API_BASE_URL", "").rstrip("/"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


# --- Logging ---

def configure_logging(level: str = "INFO") -> None:
    """
    Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
