"""Runtime settings — env-driven via pydantic-settings.

Every setting can be overridden with an ``ARCSHELL_*`` environment variable
or a ``.env`` file in the working directory. CLI options take precedence.

Examples
--------
Override via environment::

    export ARCSHELL_STORE_PATH=/var/cache/arcshell
    export ARCSHELL_SYSTEM=x86_64-linux
    export ARCSHELL_FETCH_TIMEOUT_SECONDS=60
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArcshellSettings(BaseSettings):
    """Settings for one arcshell invocation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ARCSHELL_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    store_path: Path = Path(".arcshell/store")
    manifest_path: Path | None = None  # None: bundled ArceOS manifest
    lock_path: Path = Path("arcshell.lock")

    # Fetching
    fetch_timeout_seconds: float = Field(default=300.0, gt=0)
    max_parallel_fetches: int = Field(default=4, ge=1)

    # Environment
    system: str | None = None  # None: detect from the running host
    default_profile: str = "default"
    shell: str | None = None  # None: $SHELL, then /bin/sh

    # Observability
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level
