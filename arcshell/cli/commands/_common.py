"""Shared CLI plumbing: options, workspace wiring, and error exits."""

from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from arcshell.config import ArcshellSettings
from arcshell.core.artifact_store import ContentAddressedStore
from arcshell.core.composer import EnvironmentComposer
from arcshell.core.errors import ConfigError, ProvisioningError
from arcshell.core.fetcher import Fetcher
from arcshell.core.host import detect_system
from arcshell.core.registry import ArtifactRegistry

console = Console()
err_console = Console(stderr=True)

PROFILE_OPTION = typer.Option(
    None, "--profile", "-p", help="Profile to use (default: settings.default_profile)."
)
MANIFEST_OPTION = typer.Option(
    None, "--manifest", "-m", help="Manifest TOML file (default: bundled ArceOS manifest)."
)
STORE_OPTION = typer.Option(
    None, "--store", "-s", help="Artifact store directory."
)
LOCK_OPTION = typer.Option(
    None, "--lock", help="Lock file with pinned digests."
)
SYSTEM_OPTION = typer.Option(
    None, "--system", help="Host platform, e.g. x86_64-linux (default: detected)."
)
TIMEOUT_OPTION = typer.Option(
    None, "--timeout", help="Per-download timeout in seconds."
)


class Workspace:
    """Everything one command needs, wired from settings.

    The store, fetcher and composer are built on first use, so commands that
    only read the manifest never touch the store directory.
    """

    def __init__(self, settings: ArcshellSettings) -> None:
        self.settings = settings
        self.system = settings.system or detect_system()
        self.registry = ArtifactRegistry.load(settings.manifest_path, settings.lock_path)

    @cached_property
    def store(self) -> ContentAddressedStore:
        return ContentAddressedStore(self.settings.store_path)

    @cached_property
    def fetcher(self) -> Fetcher:
        return Fetcher(self.store, timeout=self.settings.fetch_timeout_seconds)

    @cached_property
    def composer(self) -> EnvironmentComposer:
        return EnvironmentComposer(
            self.registry, self.fetcher, max_workers=self.settings.max_parallel_fetches
        )

    def profile(self, requested: str | None) -> str:
        return requested or self.settings.default_profile


def load_settings(**overrides: Any) -> ArcshellSettings:
    """Settings from ``ARCSHELL_*``/``.env`` plus explicit overrides.

    Invalid values are a ``ConfigError``.
    """
    try:
        return ArcshellSettings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def open_workspace(
    *,
    manifest: Path | None = None,
    store: Path | None = None,
    lock: Path | None = None,
    system: str | None = None,
    timeout: float | None = None,
) -> Workspace:
    """Build a workspace; explicit options override ``ARCSHELL_*`` settings."""
    overrides = {
        "manifest_path": manifest,
        "store_path": store,
        "lock_path": lock,
        "system": system,
        "fetch_timeout_seconds": timeout,
    }
    settings = load_settings(**{k: v for k, v in overrides.items() if v is not None})
    return Workspace(settings)


def fail(exc: ProvisioningError) -> NoReturn:
    """Report ``exc`` and exit with its code."""
    err_console.print(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
    raise typer.Exit(code=exc.exit_code)
