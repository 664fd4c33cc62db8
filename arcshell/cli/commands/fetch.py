"""``arcshell fetch`` — fetch and verify every artifact of a profile."""

from __future__ import annotations

from pathlib import Path

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


def fetch_cmd(
    profile: str = PROFILE_OPTION,
    manifest: Path = MANIFEST_OPTION,
    store: Path = STORE_OPTION,
    lock: Path = LOCK_OPTION,
    system: str = SYSTEM_OPTION,
    timeout: float = TIMEOUT_OPTION,
) -> None:
    """Fetch, verify, and store the artifacts of a profile.

    Artifacts already in the store are not downloaded again.
    """
    try:
        ws = open_workspace(
            manifest=manifest, store=store, lock=lock, system=system, timeout=timeout
        )
        descriptors = ws.registry.list_for(ws.profile(profile), ws.system)
        fetched = ws.composer.fetch_all(descriptors)
    except ProvisioningError as exc:
        fail(exc)

    EnvironmentRenderer(console=console).print_fetched(fetched)
