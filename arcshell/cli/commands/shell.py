"""``arcshell shell`` — enter a shell with a profile's environment."""

from __future__ import annotations

from pathlib import Path

import typer

from arcshell.cli.commands._common import (
    LOCK_OPTION,
    MANIFEST_OPTION,
    PROFILE_OPTION,
    STORE_OPTION,
    SYSTEM_OPTION,
    TIMEOUT_OPTION,
    err_console,
    fail,
    open_workspace,
)
from arcshell.core.errors import ProvisioningError
from arcshell.core.launcher import launch


def shell_cmd(
    profile: str = PROFILE_OPTION,
    command: str = typer.Option(
        None, "--command", "-c", help="Run this command instead of an interactive shell."
    ),
    shell: str = typer.Option(
        None, "--shell", help="Shell program (default: settings.shell, then $SHELL)."
    ),
    manifest: Path = MANIFEST_OPTION,
    store: Path = STORE_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
    timeout: float = TIMEOUT_OPTION,
) -> None:
    """Fetch a profile, then start a shell with its environment applied.

    Exits with the shell's exit code.
    """
    try:
        ws = open_workspace(
            manifest=manifest, store=store, lock=lock, system=system, timeout=timeout
        )
        env = ws.composer.compose(ws.profile(profile), ws.system)
    except ProvisioningError as exc:
        fail(exc)

    if command is None:
        err_console.print(
            f"[dim]Entering {env.profile} shell ({len(env.artifacts)} artifacts)[/dim]"
        )
    code = launch(env, shell=shell or ws.settings.shell, command=command)
    raise typer.Exit(code=code)
