"""Main Typer application — imports and registers all CLI commands.

Entry point: ``arcshell`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from arcshell.cli.commands._common import fail, load_settings
from arcshell.cli.commands.doctor import doctor_cmd
from arcshell.cli.commands.env import env_cmd
from arcshell.cli.commands.fetch import fetch_cmd
from arcshell.cli.commands.lock import lock_cmd
from arcshell.cli.commands.prefetch import prefetch_cmd
from arcshell.cli.commands.profiles import profiles_cmd
from arcshell.cli.commands.shell import shell_cmd
from arcshell.core.errors import ProvisioningError

app = typer.Typer(
    name="arcshell",
    help="arcshell: reproducible cross-toolchain development shells for ArceOS.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="profiles", help="List profiles and their artifacts.")(profiles_cmd)
app.command(name="fetch", help="Fetch and verify a profile's artifacts.")(fetch_cmd)
app.command(name="env", help="Print a profile's composed environment.")(env_cmd)
app.command(name="shell", help="Enter a shell with a profile's environment.")(shell_cmd)
app.command(name="lock", help="Pin digests for unpinned artifacts.")(lock_cmd)
app.command(name="prefetch", help="Print the digest of a URL.")(prefetch_cmd)
app.command(name="doctor", help="Check host tools and artifact status.")(doctor_cmd)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging for every subcommand."""
    try:
        level = logging.DEBUG if verbose else load_settings().log_level
    except ProvisioningError as exc:
        fail(exc)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
