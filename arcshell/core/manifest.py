"""Loading the environment manifest (TOML) and the lock file (JSON).

When no manifest path is given, the ArceOS manifest bundled with the package
is used. A missing lock file is an empty lock; writes are atomic.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import tomllib
from importlib import resources
from pathlib import Path

from pydantic import ValidationError

from arcshell.core.errors import ConfigError
from arcshell.models.manifest import LockFile, Manifest

logger = logging.getLogger(__name__)

BUNDLED_MANIFEST = "arceos.toml"


def _read_manifest_text(path: Path | None) -> tuple[str, str]:
    if path is None:
        resource = resources.files("arcshell").joinpath("data", BUNDLED_MANIFEST)
        return resource.read_text(encoding="utf-8"), f"<bundled {BUNDLED_MANIFEST}>"
    try:
        return Path(path).read_text(encoding="utf-8"), str(path)
    except OSError as exc:
        raise ConfigError(f"Cannot read manifest {path}: {exc}") from exc


def load_manifest(path: Path | None = None) -> Manifest:
    """Parse and validate a manifest. Any problem is a ``ConfigError``."""
    text, origin = _read_manifest_text(path)
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in manifest {origin}: {exc}") from exc

    try:
        manifest = Manifest.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid manifest {origin}: {exc}") from exc

    logger.debug(
        "Loaded manifest %s: %d artifacts, profiles %s",
        origin,
        len(manifest.artifacts),
        sorted(manifest.profiles),
    )
    return manifest


def load_lock(path: Path | None) -> LockFile:
    """Read a lock file; a missing file yields an empty lock."""
    if path is None or not Path(path).exists():
        return LockFile()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return LockFile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid lock file {path}: {exc}") from exc


def write_lock(path: Path, lock: LockFile) -> None:
    """Write ``lock`` to ``path`` atomically (temp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(lock.model_dump(mode="json"), indent=2, sort_keys=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Wrote lock file %s (%d digests)", path, len(lock.digests))
