"""
Service configuration and logging setup.

Settings are resolved once, from ``BOOKSHOP_*`` environment variables and
an optional ``.env`` file, when the application is built. The resulting
object is passed to the components that need it; nothing below the
application factory reads the environment.

Profile-dependent defaults:

    profile       db_path                  log_level
    development   data/bookshop-dev.db     DEBUG
    production    data/bookshop.db         INFO
    test          data/bookshop-test.db    WARNING
"""

import logging
import sys
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Profile = Literal["development", "production", "test"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_DEFAULT_DB_PATHS = {
    "development": Path("data/bookshop-dev.db"),
    "production": Path("data/bookshop.db"),
    "test": Path("data/bookshop-test.db"),
}

_DEFAULT_LOG_LEVELS = {
    "development": "DEBUG",
    "production": "INFO",
    "test": "WARNING",
}


class Settings(BaseSettings):
    """Bookshop service settings."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKSHOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    profile: Profile = Field(default="development", description="Deployment profile")

    db_path: Optional[Path] = Field(default=None, description="SQLite database file")
    db_timeout: float = Field(default=5.0, gt=0, description="SQLite busy timeout (seconds)")

    service_path: str = Field(default="/bookshop", description="Mount point of the service")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4004, ge=1, le=65535)

    log_level: Optional[LogLevel] = Field(default=None)

    seed_csv: Optional[Path] = Field(
        default=None, description="CSV loaded into an empty store at startup"
    )

    @model_validator(mode="after")
    def _apply_profile_defaults(self) -> "Settings":
        if self.db_path is None:
            self.db_path = _DEFAULT_DB_PATHS[self.profile]
        if self.log_level is None:
            self.log_level = _DEFAULT_LOG_LEVELS[self.profile]

        path = "/" + self.service_path.strip("/")
        if path == "/":
            raise ValueError("service_path cannot be the application root")
        self.service_path = path
        return self


def configure_logging(settings: Settings) -> logging.Handler:
    """
    Attach a stream handler to the ``bookshop`` logger.

    Returns:
        The installed handler, to hand back to ``teardown_logging``
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    app_logger = logging.getLogger("bookshop")
    app_logger.addHandler(handler)
    app_logger.setLevel(settings.log_level)
    return handler


def teardown_logging(handler: logging.Handler) -> None:
    """Detach and close a handler installed by ``configure_logging``."""
    logging.getLogger("bookshop").removeHandler(handler)
    handler.close()
