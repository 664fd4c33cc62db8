"""``arcshell env`` — print the composed environment.

``--format hook`` prints POSIX shell statements for ``eval``; ``--format
json`` prints the environment as JSON; the default is a Rich summary.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer

from arcshell.cli.commands._common import (
    LOCK_OPTION,
    MANIFEST_OPTION,
    PROFILE_OPTION,
    STORE_OPTION,
    SYSTEM_OPTION,
    TIMEOUT_OPTION,
    console,
    fail,
    open_workspace,
)
from arcshell.cli.renderer import EnvironmentRenderer
from arcshell.core.errors import ProvisioningError
from arcshell.core.launcher import render_hook


class OutputFormat(str, Enum):
    TABLE = "table"
    HOOK = "hook"
    JSON = "json"


def env_cmd(
    profile: str = PROFILE_OPTION,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE, "--format", "-f", help="Output format."
    ),
    manifest: Path = MANIFEST_OPTION,
    store: Path = STORE_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
    timeout: float = TIMEOUT_OPTION,
) -> None:
    """Compose a profile's environment and print it."""
    try:
        ws = open_workspace(
            manifest=manifest, store=store, lock=lock, system=system, timeout=timeout
        )
        env = ws.composer.compose(ws.profile(profile), ws.system)
    except ProvisioningError as exc:
        fail(exc)

    if output is OutputFormat.HOOK:
        typer.echo(render_hook(env), nl=False)
    elif output is OutputFormat.JSON:
        typer.echo(env.model_dump_json(indent=2))
    else:
        EnvironmentRenderer(console=console).print_environment(env)
