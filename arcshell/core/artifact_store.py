"""Content-addressed, immutable artifact store.

Storage layout::

    {base}/{key[0:32]}-{name}-{version}/
        out/         extracted artifact tree
        entry.json   record of the verified digests and source URLs

``key`` is the hex SHA-256 of the main archive, or, for artifacts with
components, the SHA-256 over the main digest followed by each component
digest. Entries are built in a staging directory under ``{base}`` and
promoted with a single ``os.rename``, so a partially extracted entry is never
visible. No delete method: entries are immutable once promoted.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from arcshell.core.errors import InstallError, IntegrityError
from arcshell.core.hasher import sha256_hex, to_sri
from arcshell.models.artifacts import ArtifactDescriptor, FetchedArtifact

logger = logging.getLogger(__name__)

ENTRY_RECORD = "entry.json"
ENTRY_OUTPUT = "out"
_STAGING_PREFIX = ".staging-"


class ContentAddressedStore:
    """Local store keyed by (name, version, digests).

    Parameters
    ----------
    base_path:
        Root directory of the store. Created on the first write, so read-only
        use (lookups, listings) leaves the filesystem untouched.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    @staticmethod
    def entry_key(digest: bytes, component_digests: Sequence[bytes] = ()) -> str:
        if not component_digests:
            return digest.hex()
        return sha256_hex(digest + b"".join(component_digests))

    @classmethod
    def entry_name(
        cls,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> str:
        key = cls.entry_key(digest, component_digests)
        return f"{key[:32]}-{descriptor.name}-{descriptor.version}"

    def entry_path(
        self,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> Path:
        return self._base / self.entry_name(descriptor, digest, component_digests)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def exists(
        self,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> bool:
        return self.entry_path(descriptor, digest, component_digests).exists()

    def lookup(
        self,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> FetchedArtifact | None:
        """Return the verified entry for the digests, or None if absent.

        An entry whose record is missing or names other digests raises
        ``IntegrityError``; it is never served.
        """
        path = self.entry_path(descriptor, digest, component_digests)
        if not path.exists():
            return None

        expected = to_sri(digest)
        record = self._read_record(path)
        recorded = record.get("digest", "<missing entry record>")
        if recorded != expected or not (path / ENTRY_OUTPUT).is_dir():
            raise IntegrityError(descriptor.name, expected, str(recorded))

        expected_components = [to_sri(d) for d in component_digests]
        recorded_components = record.get("components", [])
        if recorded_components != expected_components:
            raise IntegrityError(
                descriptor.name,
                ", ".join(expected_components),
                ", ".join(map(str, recorded_components)) or "<no components>",
            )

        return FetchedArtifact(
            descriptor=descriptor,
            local_path=path / ENTRY_OUTPUT,
            digest=digest,
            component_digests=tuple(component_digests),
            verified=True,
            cache_hit=True,
        )

    def verify(
        self,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> bool:
        """True if a well-formed entry for the digests is present."""
        try:
            return self.lookup(descriptor, digest, component_digests) is not None
        except IntegrityError:
            return False

    @staticmethod
    def _read_record(path: Path) -> dict:
        try:
            return json.loads((path / ENTRY_RECORD).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}

    # ------------------------------------------------------------------
    # Staging and promotion
    # ------------------------------------------------------------------

    def create_staging(self) -> Path:
        """A fresh private directory on the store's filesystem."""
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=_STAGING_PREFIX, dir=self._base))
        except OSError as exc:
            raise InstallError(f"Cannot create staging area in {self._base}: {exc}") from exc

    @staticmethod
    def discard(staging: Path) -> None:
        shutil.rmtree(staging, ignore_errors=True)

    def promote(
        self,
        staging: Path,
        descriptor: ArtifactDescriptor,
        digest: bytes,
        component_digests: Sequence[bytes] = (),
    ) -> FetchedArtifact:
        """Atomically move a populated staging directory into place.

        ``staging`` must contain the extracted tree under ``out/``. When a
        concurrent fetch promoted the same entry first, the staging directory
        is discarded and the winner's entry is returned as a cache hit. Any
        other failure is an ``InstallError``.
        """
        record = {
            "name": descriptor.name,
            "version": descriptor.version,
            "url": descriptor.url,
            "digest": to_sri(digest),
            "components": [to_sri(d) for d in component_digests],
            "component_urls": [c.url for c in descriptor.components],
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        final = self.entry_path(descriptor, digest, component_digests)
        try:
            (staging / ENTRY_RECORD).write_text(
                json.dumps(record, indent=2, sort_keys=True), encoding="utf-8"
            )
            os.rename(staging, final)
        except OSError as exc:
            self.discard(staging)
            winner = self.lookup(descriptor, digest, component_digests)
            if winner is None:
                raise InstallError(
                    f"Cannot promote {descriptor.name!r} into {final}: {exc}"
                ) from exc
            logger.debug("Lost promotion race for %s; using existing entry", final.name)
            return winner

        logger.info("Stored %s %s at %s", descriptor.name, descriptor.version, final)
        return FetchedArtifact(
            descriptor=descriptor,
            local_path=final / ENTRY_OUTPUT,
            digest=digest,
            component_digests=tuple(component_digests),
            verified=True,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def entries(self) -> list[Path]:
        """Promoted entry directories, sorted by name. Staging is skipped."""
        if not self._base.is_dir():
            return []
        return sorted(
            p for p in self._base.iterdir()
            if p.is_dir() and not p.name.startswith(_STAGING_PREFIX)
        )
