"""Composed shell environment model."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ComposedEnvironment(BaseModel):
    """Search paths and variable overrides for one profile on one host.

    Derived per invocation and never persisted. ``search_paths`` are
    prepended to ``PATH`` in order; names in ``unset`` are removed from the
    inherited environment before ``variables`` are exported.
    """

    model_config = ConfigDict(frozen=True)

    profile: str
    system: str
    search_paths: tuple[Path, ...] = ()
    variables: dict[str, str] = Field(default_factory=dict)
    unset: tuple[str, ...] = ()
    artifacts: tuple[str, ...] = ()
    environment_hash: str = ""  # content address over every other field
