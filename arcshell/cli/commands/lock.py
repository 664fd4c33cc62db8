"""``arcshell lock`` — pin digests for unpinned artifacts.

Each unpinned artifact applicable to the host is downloaded once, its digest
recorded in the lock file, and the artifact kept in the store. Later
fetches verify against the recorded digest.
"""

from __future__ import annotations

from pathlib import Path

from rich.table import Table

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
from arcshell.core.errors import ProvisioningError
from arcshell.core.hasher import to_sri
from arcshell.core.manifest import write_lock
from arcshell.core.pinning import update_lock


def lock_cmd(
    profile: str = PROFILE_OPTION,
    manifest: Path = MANIFEST_OPTION,
    store: Path = STORE_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
    timeout: float = TIMEOUT_OPTION,
) -> None:
    """Pin every unpinned artifact (of one profile, or all) for this host."""
    try:
        ws = open_workspace(
            manifest=manifest, store=store, lock=lock, system=system, timeout=timeout
        )
        new_lock, pinned = update_lock(ws.registry, ws.fetcher, ws.system, profile)
    except ProvisioningError as exc:
        fail(exc)

    if not pinned:
        console.print("[dim]Nothing to pin; every artifact already has a digest.[/dim]")
        return

    write_lock(ws.settings.lock_path, new_lock)

    table = Table(title=f"Pinned in {ws.settings.lock_path}")
    table.add_column("Artifact", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Digest")
    for artifact in pinned:
        table.add_row(artifact.name, artifact.descriptor.version, to_sri(artifact.digest))
    console.print(table)
