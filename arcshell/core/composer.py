"""Environment Composer — profile + host -> ComposedEnvironment.

Pipeline: registry lookup -> fetch every descriptor (in parallel) -> order
search paths and apply variable rules. Composition is all-or-nothing: the
first fetch failure cancels the pending fetches and is re-raised.

Variable precedence
-------------------
Rules are applied in this order, and the last write to a name wins:

1. each artifact's rules, in registry order (unsets, then sets);
2. the manifest's shell-level rules (unsets, then sets).

A later set cancels an earlier unset of the same name and vice versa.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from arcshell.core.errors import IntegrityError
from arcshell.core.fetcher import Fetcher
from arcshell.core.hasher import content_address, to_sri
from arcshell.core.registry import ArtifactRegistry, rules_from
from arcshell.models.artifacts import ArtifactDescriptor, EnvRule, FetchedArtifact
from arcshell.models.environment import ComposedEnvironment
from arcshell.models.manifest import ShellRules

logger = logging.getLogger(__name__)


def apply_rules(
    rules: Iterable[tuple[EnvRule, FetchedArtifact | None]],
) -> tuple[dict[str, str], list[str]]:
    """Fold rules into (variables, unset), last write wins."""
    variables: dict[str, str] = {}
    unset: dict[str, None] = {}
    for rule, artifact in rules:
        value = rule.resolve(artifact.local_path if artifact is not None else None)
        if value is None:
            variables.pop(rule.name, None)
            unset[rule.name] = None
        else:
            unset.pop(rule.name, None)
            variables[rule.name] = value
    return variables, list(unset)


def compose_environment(
    profile: str,
    system: str,
    fetched: Sequence[FetchedArtifact],
    shell_rules: ShellRules | None = None,
) -> ComposedEnvironment:
    """Build the environment from already-fetched artifacts, in order.

    Raises ``IntegrityError`` if any artifact is not verified.
    """
    for artifact in fetched:
        if not artifact.verified:
            raise IntegrityError(
                artifact.name, artifact.descriptor.expected_sri, "<unverified>"
            )

    search_paths = [p for artifact in fetched for p in artifact.search_paths()]

    rules: list[tuple[EnvRule, FetchedArtifact | None]] = [
        (rule, artifact) for artifact in fetched for rule in artifact.descriptor.env
    ]
    if shell_rules is not None:
        rules.extend(
            (rule, None) for rule in rules_from(shell_rules.unset, shell_rules.env)
        )
    variables, unset = apply_rules(rules)

    names = tuple(a.name for a in fetched)
    environment_hash = content_address({
        "profile": profile,
        "system": system,
        "artifacts": [
            [
                a.name,
                a.descriptor.version,
                to_sri(a.digest),
                [to_sri(d) for d in a.component_digests],
            ]
            for a in fetched
        ],
        "search_paths": [str(p) for p in search_paths],
        "variables": variables,
        "unset": unset,
    })

    return ComposedEnvironment(
        profile=profile,
        system=system,
        search_paths=tuple(search_paths),
        variables=variables,
        unset=tuple(unset),
        artifacts=names,
        environment_hash=environment_hash,
    )


class EnvironmentComposer:
    """Turns a profile into a composed environment.

    Parameters
    ----------
    registry:
        Source of descriptors and shell-level rules.
    fetcher:
        Fetch & Verify backend shared by all parallel fetches.
    max_workers:
        Upper bound on concurrent fetches.
    """

    def __init__(
        self,
        registry: ArtifactRegistry,
        fetcher: Fetcher,
        *,
        max_workers: int = 4,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._max_workers = max(1, max_workers)

    def fetch_all(self, descriptors: Sequence[ArtifactDescriptor]) -> list[FetchedArtifact]:
        """Fetch ``descriptors`` concurrently; results keep input order.

        The first failure cancels fetches that have not started, waits for
        running ones, and is re-raised.
        """
        if not descriptors:
            return []

        results: list[FetchedArtifact | None] = [None] * len(descriptors)
        pool = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(descriptors)),
            thread_name_prefix="arcshell-fetch",
        )
        try:
            futures = {
                pool.submit(self._fetcher.fetch, d): i
                for i, d in enumerate(descriptors)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

        return [r for r in results if r is not None]

    def compose(self, profile: str, system: str) -> ComposedEnvironment:
        """Resolve, fetch, and compose ``profile`` for ``system``."""
        descriptors = self._registry.list_for(profile, system)
        fetched = self.fetch_all(descriptors)
        env = compose_environment(
            profile, system, fetched, self._registry.shell_rules
        )
        logger.info(
            "Composed %s for %s: %d artifacts, %d search paths",
            profile,
            system,
            len(fetched),
            len(env.search_paths),
        )
        return env
