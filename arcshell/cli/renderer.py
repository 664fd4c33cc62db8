"""Rich terminal rendering for profiles, fetch results, and environments."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from arcshell.core.artifact_store import ContentAddressedStore
from arcshell.core.errors import ConfigError
from arcshell.core.host import ToolCheck
from arcshell.core.registry import ArtifactRegistry
from arcshell.models.artifacts import FetchedArtifact
from arcshell.models.environment import ComposedEnvironment

_YES = "[green]yes[/green]"
_NO = "[red]no[/red]"


class EnvironmentRenderer:
    """Renders arcshell state as Rich tables and panels.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_profiles(self, registry: ArtifactRegistry, system: str) -> None:
        table = Table(title=f"Profiles for {system}")
        table.add_column("Profile", style="cyan")
        table.add_column("Artifacts")

        for profile in registry.profiles():
            try:
                names = [
                    f"{d.name} {d.version}"
                    + ("" if d.is_pinned else " [yellow](unpinned)[/yellow]")
                    for d in registry.applicable(profile, system)
                ]
            except ConfigError as exc:
                names = [f"[red]{escape(str(exc))}[/red]"]
            table.add_row(profile, "\n".join(names) or "[dim]none[/dim]")

        self.console.print(table)

    def print_fetched(self, fetched: Sequence[FetchedArtifact]) -> None:
        table = Table(title="Fetched artifacts")
        table.add_column("Artifact", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Cached", justify="center")
        table.add_column("Path")

        for artifact in fetched:
            table.add_row(
                artifact.name,
                artifact.descriptor.version,
                _YES if artifact.cache_hit else "[dim]no[/dim]",
                str(artifact.local_path),
            )
        self.console.print(table)

    def print_environment(self, env: ComposedEnvironment) -> None:
        lines = [
            f"[bold]Profile:[/bold]   {env.profile}",
            f"[bold]System:[/bold]    {env.system}",
            f"[bold]Hash:[/bold]      {env.environment_hash}",
            f"[bold]Artifacts:[/bold] {', '.join(env.artifacts) or 'none'}",
            "",
            "[bold]PATH prepend:[/bold]",
        ]
        lines.extend(f"  {p}" for p in env.search_paths)
        lines.append("")
        lines.append("[bold]Variables:[/bold]")
        lines.extend(f"  {k}={v}" for k, v in env.variables.items())
        lines.extend(f"  [dim]unset {name}[/dim]" for name in env.unset)

        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold]Composed environment[/bold]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def print_tool_checks(self, checks: Sequence[ToolCheck]) -> None:
        table = Table(title="Host tools")
        table.add_column("Tool", style="cyan")
        table.add_column("Found", justify="center")
        table.add_column("Path")
        for check in checks:
            table.add_row(check.name, _YES if check.found else _NO, check.resolved_path)
        self.console.print(table)

    def print_artifact_status(
        self,
        registry: ArtifactRegistry,
        store: ContentAddressedStore,
        system: str,
    ) -> None:
        table = Table(title=f"Artifacts for {system}")
        table.add_column("Artifact", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Platforms")
        table.add_column("Pinned", justify="center")
        table.add_column("In store", justify="center")

        for d in registry.descriptors:
            if not d.applies_to(system):
                continue
            stored = d.is_pinned and store.verify(d, d.expected_digest, d.component_digests)
            platforms = getattr(d.platform_predicate, "describe", lambda: "custom")()
            table.add_row(
                d.name,
                d.version,
                platforms,
                _YES if d.is_pinned else _NO,
                _YES if stored else "[dim]no[/dim]",
            )
        self.console.print(table)
