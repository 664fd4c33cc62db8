"""Fetch & Verify — materialize a descriptor into the store.

A fetch either returns a verified store entry or raises; it never leaves
partial state behind. Downloads are streamed into a staging directory and
hashed as they are written. Nothing is extracted until every digest (the main
archive and each component) matches.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import subprocess
import tarfile
import time
import urllib.parse
import urllib.request
import zipfile
from pathlib import Path
from typing import Any

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.exceptions import ReadTimeoutError

from arcshell import __version__
from arcshell.core.artifact_store import ENTRY_OUTPUT, ContentAddressedStore
from arcshell.core.errors import ConfigError, FetchError, InstallError, IntegrityError
from arcshell.core.hasher import to_sri
from arcshell.models.artifacts import ArtifactDescriptor, FetchedArtifact, Installer

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1 << 20
_USER_AGENT = f"arcshell/{__version__}"


class Fetcher:
    """Downloads, verifies, and unpacks artifacts into a store.

    Parameters
    ----------
    store:
        The content-addressed store entries are promoted into.
    timeout:
        Seconds a single download may take in total, checked after every
        read. Also the per-request connect/read timeout, so a stalled
        connection ends after at most twice this value.
    session:
        Object with a ``requests``-compatible ``get``. Defaults to the
        ``requests`` module itself, which is safe to share across threads.
    """

    def __init__(
        self,
        store: ContentAddressedStore,
        *,
        timeout: float = 300.0,
        session: Any = None,
    ) -> None:
        self._store = store
        self._timeout = timeout
        self._http = session if session is not None else requests

    @property
    def store(self) -> ContentAddressedStore:
        return self._store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(self, descriptor: ArtifactDescriptor) -> FetchedArtifact:
        """Return a verified store entry for ``descriptor``.

        Cache hit when the entry exists. Otherwise download, compare each
        SHA-256 with its pinned digest (``IntegrityError`` on mismatch),
        unpack, install, and promote.
        """
        if not descriptor.is_pinned:
            raise ConfigError(
                f"Artifact {descriptor.name!r} has no pinned digest; "
                "run 'arcshell lock' to pin it"
            )

        cached = self._store.lookup(
            descriptor, descriptor.expected_digest, descriptor.component_digests
        )
        if cached is not None:
            logger.debug("Cache hit for %s %s", descriptor.name, descriptor.version)
            return cached

        return self._materialize(descriptor, trust=False)

    def prefetch(self, descriptor: ArtifactDescriptor) -> FetchedArtifact:
        """Fetch trusting whatever the URLs serve for unpinned parts.

        Pinned parts are still verified. Fully pinned descriptors go through
        ``fetch`` unchanged.
        """
        if descriptor.is_pinned:
            return self.fetch(descriptor)
        return self._materialize(descriptor, trust=True)

    def download_digest(self, url: str) -> bytes:
        """Download ``url`` to a scratch location and return its SHA-256."""
        staging = self._store.create_staging()
        try:
            return self._download(url, staging / _archive_name(url))
        finally:
            self._store.discard(staging)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _materialize(self, descriptor: ArtifactDescriptor, *, trust: bool) -> FetchedArtifact:
        staging = self._store.create_staging()
        try:
            downloads = staging / "download"
            downloads.mkdir()

            logger.info("Fetching %s %s from %s", descriptor.name, descriptor.version, descriptor.url)
            archive = downloads / _archive_name(descriptor.url)
            digest = self._download(descriptor.url, archive)
            _check_digest(descriptor.name, descriptor.expected_digest, digest)

            component_archives: list[Path] = []
            component_digests: list[bytes] = []
            for i, component in enumerate(descriptor.components):
                logger.info("Fetching %s component %s", descriptor.name, component.url)
                path = downloads / f"{i}-{_archive_name(component.url)}"
                component_digest = self._download(component.url, path)
                _check_digest(descriptor.name, component.expected_digest, component_digest)
                component_archives.append(path)
                component_digests.append(component_digest)

            if trust:
                cached = self._store.lookup(descriptor, digest, component_digests)
                if cached is not None:
                    self._store.discard(staging)
                    return cached

            try:
                self._unpack(descriptor, archive, component_archives, staging)
                shutil.rmtree(downloads)
            except OSError as exc:
                raise InstallError(
                    f"Artifact {descriptor.name!r}: cannot unpack into the store: {exc}"
                ) from exc
        except BaseException:
            self._store.discard(staging)
            raise

        return self._store.promote(staging, descriptor, digest, component_digests)

    def _download(self, url: str, dest: Path) -> bytes:
        """Stream ``url`` into ``dest``; return the SHA-256 of the bytes."""
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme == "file":
            return self._copy_local(Path(urllib.request.url2pathname(parsed.path)), dest, url)

        h = hashlib.sha256()
        deadline = time.monotonic() + self._timeout
        try:
            with self._http.get(
                url,
                stream=True,
                timeout=self._timeout,
                headers={"User-Agent": _USER_AGENT},
            ) as resp:
                resp.raise_for_status()
                with open(dest, "wb") as fh:
                    # read1 returns whatever has arrived; deadline checked per read.
                    while chunk := resp.raw.read1(_CHUNK_SIZE, decode_content=True):
                        h.update(chunk)
                        fh.write(chunk)
                        if time.monotonic() > deadline:
                            raise self._timed_out(url)
        except requests.Timeout as exc:
            raise self._timed_out(url, exc) from exc
        except requests.ConnectionError as exc:
            if _is_read_timeout(exc) or time.monotonic() > deadline:
                raise self._timed_out(url, exc) from exc
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc
        except (ReadTimeoutError, TimeoutError) as exc:
            raise self._timed_out(url, exc) from exc
        except Urllib3HTTPError as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc
        except OSError as exc:
            raise FetchError(f"Failed to write download of {url}: {exc}", url=url) from exc
        return h.digest()

    def _timed_out(self, url: str, cause: BaseException | None = None) -> FetchError:
        detail = f": {cause}" if cause is not None else ""
        return FetchError(
            f"Timed out after {self._timeout:g}s fetching {url}{detail}",
            url=url,
            timed_out=True,
        )

    @staticmethod
    def _copy_local(source: Path, dest: Path, url: str) -> bytes:
        h = hashlib.sha256()
        try:
            with open(source, "rb") as src, open(dest, "wb") as fh:
                for chunk in iter(lambda: src.read(_CHUNK_SIZE), b""):
                    h.update(chunk)
                    fh.write(chunk)
        except OSError as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc
        return h.digest()

    # ------------------------------------------------------------------
    # Unpack and install
    # ------------------------------------------------------------------

    def _unpack(
        self,
        descriptor: ArtifactDescriptor,
        archive: Path,
        component_archives: list[Path],
        staging: Path,
    ) -> None:
        """Extract ``archive`` (and components) and install into ``staging/out``."""
        unpack_dir = staging / "unpack"
        unpack_dir.mkdir()
        _extract(archive, unpack_dir, descriptor.name)
        root = _source_root(unpack_dir, descriptor.source_root, descriptor.name)
        out = staging / ENTRY_OUTPUT

        if descriptor.installer is Installer.RUST_INSTALLER:
            _run_rust_installer(root, out, descriptor.name)
        else:
            root.rename(out)
        shutil.rmtree(unpack_dir, ignore_errors=True)

        for i, component in enumerate(component_archives):
            component_dir = staging / f"component-{i}"
            component_dir.mkdir()
            _extract(component, component_dir, descriptor.name)
            _run_rust_installer(
                _source_root(component_dir, None, descriptor.name), out, descriptor.name
            )
            shutil.rmtree(component_dir, ignore_errors=True)


def _archive_name(url: str) -> str:
    name = Path(urllib.parse.urlparse(url).path).name
    return name or "download"


def _is_read_timeout(exc: requests.ConnectionError) -> bool:
    """requests wraps a mid-body read timeout in ConnectionError."""
    cause = exc.args[0] if exc.args else None
    return isinstance(cause, ReadTimeoutError) or isinstance(exc.__context__, ReadTimeoutError)


def _check_digest(name: str, expected: bytes | None, computed: bytes) -> None:
    if expected is not None and computed != expected:
        raise IntegrityError(name, to_sri(expected), to_sri(computed))


def _extract(archive: Path, dest: Path, name: str) -> None:
    try:
        if zipfile.is_zipfile(archive):
            _extract_zip(archive, dest)
        else:
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(dest, filter="data")
    except (tarfile.TarError, zipfile.BadZipFile) as exc:
        raise ConfigError(f"Artifact {name!r} is not a supported archive: {exc}") from exc


def _extract_zip(archive: Path, dest: Path) -> None:
    """Extract a zip, keeping the Unix permission bits it records."""
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            path = zf.extract(info, dest)
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir():
                # no group/other write, as with tarfile's data filter
                os.chmod(path, mode & 0o755)


def _source_root(unpack_dir: Path, source_root: str | None, name: str) -> Path:
    """The directory that becomes the artifact's output.

    An explicit ``source_root`` must exist. Otherwise a single top-level
    directory is used, else the unpack directory itself.
    """
    if source_root:
        root = unpack_dir / source_root
        if not root.is_dir():
            raise ConfigError(
                f"Artifact {name!r}: source root {source_root!r} not found in archive"
            )
        return root

    children = list(unpack_dir.iterdir())
    if len(children) == 1 and children[0].is_dir():
        return children[0]
    return unpack_dir


def _run_rust_installer(root: Path, out: Path, name: str) -> None:
    script = root / "install.sh"
    if not script.is_file():
        raise InstallError(f"Artifact {name!r}: no install.sh in {root.name}")

    cmd = ["sh", str(script), f"--prefix={out}", "--disable-ldconfig"]
    logger.debug("Running %s", " ".join(cmd))
    result = subprocess.run(cmd, cwd=root, capture_output=True, text=True)
    if result.returncode != 0:
        raise InstallError(
            f"Artifact {name!r}: install.sh exited {result.returncode}: "
            f"{result.stderr.strip()[-500:]}"
        )
