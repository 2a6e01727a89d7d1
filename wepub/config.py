"""Runtime configuration for WePub."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseModel):
    """Application settings, read from ``WEPUB_*`` environment variables."""

    fetch_timeout: float = Field(
        8.0,
        description="Hard timeout for a single page fetch, in seconds",
        gt=0,
    )
    retry_attempts: int = Field(
        3,
        description="Maximum number of attempts for a transient fetch failure",
        ge=1,
    )
    retry_delay: float = Field(
        1.0,
        description="Initial backoff delay in seconds, doubled after each failure",
        ge=0,
    )
    max_concurrency: int = Field(
        8,
        description="Upper bound for the per-request concurrency limit",
        ge=1,
        le=8,
    )
    user_agent: str = Field(
        DEFAULT_USER_AGENT,
        description="User-Agent header sent with every request",
    )
    pdf_include_cover: bool = Field(
        False,
        description="Whether PDF exports start with a cover page",
    )
    pdf_include_toc: bool = Field(
        False,
        description="Whether PDF exports include a table of contents page",
    )
    language: str = Field(
        "en",
        description="Language code written into EPUB metadata",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Populated settings; unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"WEPUB_{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)

    def clamp_concurrency(self, limit: int) -> int:
        """Fit a requested concurrency limit into [1, max_concurrency]."""
        return max(1, min(self.max_concurrency, limit))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings.from_env()
