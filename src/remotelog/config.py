"""Runtime settings for remotelog, read from the environment (and a .env file)."""

import os
import sys
from typing import Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

ENV_PREFIX = "REMOTELOG_"


class Settings(BaseModel):
    """Engine settings."""

    default_limit: int = Field(100, ge=0, description="Page size used when a query names none")
    max_page_size: int = Field(100, gt=0, description="Largest page the remote will serve")
    caching_enabled: bool = Field(True, description="Cache path and repository logs")
    you_label: str = Field("You", description="Name shown for the authenticated viewer")
    log_level: str = Field("INFO", description="Minimum loguru level for the stderr sink")

    def paging_limit(self, limit: Optional[int] = None) -> int:
        """Clamp a requested page size to what the remote can serve.

        None falls back to the default; 0 means "everything" and is kept.
        """
        if limit is None:
            limit = self.default_limit
        if limit == 0:
            return 0
        return min(limit, self.max_page_size)


def load_settings() -> Settings:
    """Build settings from REMOTELOG_* environment variables."""
    load_dotenv()

    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw

    # Shorter alias for the most common toggle
    caching = os.getenv(f"{ENV_PREFIX}CACHING")
    if caching is not None and "caching_enabled" not in values:
        values["caching_enabled"] = caching

    return Settings(**values)


def configure_logging(settings: Settings) -> None:
    """Replace loguru's default sink with one at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())
