"""``arcshell doctor`` — check host tools and artifact status."""

from __future__ import annotations

from pathlib import Path

import typer

from arcshell.cli.commands._common import (
    LOCK_OPTION,
    MANIFEST_OPTION,
    STORE_OPTION,
    SYSTEM_OPTION,
    console,
    fail,
    open_workspace,
)
from arcshell.cli.renderer import EnvironmentRenderer
from arcshell.core.errors import ProvisioningError
from arcshell.core.host import check_host_tools


def doctor_cmd(
    manifest: Path = MANIFEST_OPTION,
    store: Path = STORE_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
) -> None:
    """Report missing host tools, unpinned artifacts, and store contents.

    Exits 1 when a host tool is missing.
    """
    try:
        ws = open_workspace(manifest=manifest, store=store, lock=lock, system=system)
    except ProvisioningError as exc:
        fail(exc)

    renderer = EnvironmentRenderer(console=console)
    checks = check_host_tools(ws.registry.shell_rules.host_tools)
    renderer.print_tool_checks(checks)
    renderer.print_artifact_status(ws.registry, ws.store, ws.system)

    missing = [c.name for c in checks if not c.found]
    if missing:
        console.print(f"[bold yellow]Missing host tools:[/bold yellow] {', '.join(missing)}")
        raise typer.Exit(code=1)
