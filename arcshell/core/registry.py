"""Artifact descriptor registry — static, ordered, pure lookup.

Descriptors are built once from a manifest (and its lock file) and kept in
registration order. That order is the search-path precedence downstream, so
every listing preserves it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from arcshell.core.errors import ConfigError
from arcshell.core.hasher import parse_digest
from arcshell.core.manifest import load_lock, load_manifest
from arcshell.models.artifacts import ArtifactDescriptor, Component, EnvRule, Installer
from arcshell.models.manifest import LockFile, Manifest, ManifestArtifact, ShellRules
from arcshell.models.platform import SupportedPlatforms

logger = logging.getLogger(__name__)


def rules_from(unset: tuple[str, ...], env: dict[str, str]) -> tuple[EnvRule, ...]:
    """Unsets first, then sets in declaration order."""
    return tuple(EnvRule(name=n) for n in unset) + tuple(
        EnvRule(name=n, value=v) for n, v in env.items()
    )


def _pinned_digest(name: str, url: str, hash_: str | None, lock: LockFile) -> bytes | None:
    pinned = hash_ or lock.digests.get(url)
    if not pinned:
        return None
    try:
        return parse_digest(pinned)
    except ValueError as exc:
        raise ConfigError(f"Artifact {name!r}: {exc}") from exc


def _descriptor_from(entry: ManifestArtifact, lock: LockFile) -> ArtifactDescriptor:
    if entry.components and entry.installer is not Installer.RUST_INSTALLER:
        raise ConfigError(
            f"Artifact {entry.name!r}: components require installer = 'rust-installer'"
        )

    return ArtifactDescriptor(
        name=entry.name,
        version=entry.version,
        url=entry.url,
        expected_digest=_pinned_digest(entry.name, entry.url, entry.hash, lock),
        platform_predicate=SupportedPlatforms(systems=entry.platforms),
        source_root=entry.source_root,
        bin_dirs=entry.bin_dirs,
        env=rules_from(entry.unset, entry.env),
        installer=entry.installer,
        components=tuple(
            Component(
                url=c.url,
                expected_digest=_pinned_digest(entry.name, c.url, c.hash, lock),
            )
            for c in entry.components
        ),
    )


class ArtifactRegistry:
    """Holds the known toolchain artifacts and the profiles selecting them.

    Parameters
    ----------
    manifest:
        Validated manifest; its ``artifacts`` order is the registration order.
    lock:
        Digests for entries the manifest leaves unpinned.
    """

    def __init__(self, manifest: Manifest, lock: LockFile | None = None) -> None:
        self._manifest = manifest
        self._lock = lock or LockFile()
        self._descriptors: tuple[ArtifactDescriptor, ...] = tuple(
            _descriptor_from(entry, self._lock) for entry in manifest.artifacts
        )

        known = {d.name for d in self._descriptors}
        for profile, members in manifest.profiles.items():
            missing = [m for m in members if m not in known]
            if missing:
                raise ConfigError(
                    f"Profile {profile!r} names unknown artifacts: {', '.join(missing)}"
                )

    @classmethod
    def load(
        cls,
        manifest_path: Path | None = None,
        lock_path: Path | None = None,
    ) -> ArtifactRegistry:
        """Build a registry from a manifest file (bundled if None) and lock."""
        return cls(load_manifest(manifest_path), load_lock(lock_path))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def lock(self) -> LockFile:
        return self._lock

    @property
    def shell_rules(self) -> ShellRules:
        return self._manifest.shell

    @property
    def descriptors(self) -> tuple[ArtifactDescriptor, ...]:
        return self._descriptors

    def profiles(self) -> list[str]:
        """Profile names in manifest order."""
        return list(self._manifest.profiles)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def applicable(self, profile: str, system: str) -> list[ArtifactDescriptor]:
        """Descriptors of ``profile`` for ``system``, pinned or not."""
        if profile not in self._manifest.profiles:
            known = ", ".join(self.profiles()) or "none"
            raise ConfigError(f"Unknown profile {profile!r} (known: {known})")

        members = set(self._manifest.profiles[profile])
        selected = [
            d for d in self._descriptors
            if d.name in members and d.applies_to(system)
        ]

        seen: set[str] = set()
        for d in selected:
            if d.name in seen:
                raise ConfigError(
                    f"Artifact {d.name!r} has more than one variant for {system}"
                )
            seen.add(d.name)
        return selected

    def list_for(self, profile: str, system: str) -> list[ArtifactDescriptor]:
        """Descriptors of ``profile`` that apply to ``system``.

        Registration order. Raises ``ConfigError`` for an unknown profile or
        when a selected descriptor has no pinned digest.
        """
        selected = self.applicable(profile, system)
        unpinned = [d.name for d in selected if not d.is_pinned]
        if unpinned:
            raise ConfigError(
                f"No pinned digest for {', '.join(unpinned)}; "
                "run 'arcshell lock' to pin them"
            )
        logger.debug(
            "Profile %s on %s: %s", profile, system, [d.name for d in selected]
        )
        return selected

    def unpinned(self, system: str, profile: str | None = None) -> list[ArtifactDescriptor]:
        """Applicable descriptors without a digest, across one or all profiles."""
        profiles = [profile] if profile is not None else self.profiles()
        wanted: list[ArtifactDescriptor] = []
        for name in profiles:
            wanted.extend(d for d in self.applicable(name, system) if not d.is_pinned)
        return [d for d in self._descriptors if d in wanted]
