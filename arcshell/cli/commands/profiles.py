"""``arcshell profiles`` — list profiles and the artifacts they select."""

from __future__ import annotations

from pathlib import Path

from arcshell.cli.commands._common import (
    MANIFEST_OPTION,
    LOCK_OPTION,
    SYSTEM_OPTION,
    console,
    fail,
    open_workspace,
)
from arcshell.cli.renderer import EnvironmentRenderer
from arcshell.core.errors import ProvisioningError


def profiles_cmd(
    manifest: Path = MANIFEST_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
) -> None:
    """List every profile with the artifacts it selects on this host."""
    try:
        ws = open_workspace(manifest=manifest, lock=lock, system=system)
    except ProvisioningError as exc:
        fail(exc)

    EnvironmentRenderer(console=console).print_profiles(ws.registry, ws.system)
