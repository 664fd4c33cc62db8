"""Trust-on-first-use pinning of unpinned manifest entries.

Each unpinned descriptor applicable to the host is prefetched; the computed
digest of every unpinned archive (main or component) is recorded in the lock
file under that archive's URL. Digests the manifest or lock already carry
are verified, never replaced.
"""

from __future__ import annotations

import logging

from arcshell.core.fetcher import Fetcher
from arcshell.core.hasher import to_sri
from arcshell.core.registry import ArtifactRegistry
from arcshell.models.artifacts import FetchedArtifact
from arcshell.models.manifest import LockFile

logger = logging.getLogger(__name__)


def update_lock(
    registry: ArtifactRegistry,
    fetcher: Fetcher,
    system: str,
    profile: str | None = None,
) -> tuple[LockFile, list[FetchedArtifact]]:
    """Pin every unpinned descriptor for ``system``.

    Returns the new lock (existing digests kept) and the artifacts that were
    pinned, in registry order. The store keeps what was fetched.
    """
    digests = dict(registry.lock.digests)
    pinned: list[FetchedArtifact] = []
    for descriptor in registry.unpinned(system, profile):
        fetched = fetcher.prefetch(descriptor)
        if descriptor.expected_digest is None:
            digests[descriptor.url] = to_sri(fetched.digest)
        for component, digest in zip(descriptor.components, fetched.component_digests):
            if component.expected_digest is None:
                digests[component.url] = to_sri(digest)
        pinned.append(fetched)
        logger.info("Pinned %s %s to %s", descriptor.name, descriptor.version, to_sri(fetched.digest))
    return LockFile(version=registry.lock.version, digests=digests), pinned
