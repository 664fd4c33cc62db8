"""``arcshell prefetch URL`` — print the pinned-digest form of a download."""

from __future__ import annotations

from pathlib import Path

import typer

from arcshell.cli.commands._common import (
    STORE_OPTION,
    TIMEOUT_OPTION,
    fail,
    open_workspace,
)
from arcshell.core.errors import ProvisioningError
from arcshell.core.hasher import to_sri


def prefetch_cmd(
    url: str = typer.Argument(..., help="URL (or file:// path) to download."),
    store: Path = STORE_OPTION,
    timeout: float = TIMEOUT_OPTION,
) -> None:
    """Download URL and print its digest as ``sha256-<base64>``.

    The download is discarded; paste the digest into a manifest ``hash``.
    """
    try:
        ws = open_workspace(store=store, timeout=timeout)
        digest = ws.fetcher.download_digest(url)
    except ProvisioningError as exc:
        fail(exc)

    typer.echo(to_sri(digest))
