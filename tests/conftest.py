"""Shared test fixtures for arcshell."""

from __future__ import annotations

import io
import json
import tarfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from arcshell.core.artifact_store import ContentAddressedStore
from arcshell.core.fetcher import Fetcher
from arcshell.core.hasher import sha256_file
from arcshell.models.artifacts import ArtifactDescriptor, EnvRule, Installer
from arcshell.models.platform import SupportedPlatforms

TOOL_SCRIPT = "#!/bin/sh\necho {name}\n"


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> ContentAddressedStore:
    """Provide a fresh ContentAddressedStore in a temp directory."""
    return ContentAddressedStore(tmp_dir / "store")


@pytest.fixture
def fetcher(store: ContentAddressedStore) -> Fetcher:
    """Provide a Fetcher over the test store."""
    return Fetcher(store, timeout=30)


# ---------------------------------------------------------------------------
# Archive and descriptor factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_archive(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: build a .tar.gz with ``<root>/bin/<tool>`` entries.

    ``files`` maps extra relative paths (under the root) to contents.
    ``root=""`` puts the files at the top level of the archive.
    """

    def _factory(
        name: str = "tool",
        *,
        root: str | None = None,
        tools: tuple[str, ...] | None = None,
        files: dict[str, str] | None = None,
    ) -> Path:
        root = f"{name}-1.0" if root is None else root
        archives = tmp_dir / "archives"
        archives.mkdir(exist_ok=True)
        path = archives / f"{name}.tar.gz"

        entries: dict[str, tuple[str, int]] = {}
        for tool in tools if tools is not None else (name,):
            entries[f"bin/{tool}"] = (TOOL_SCRIPT.format(name=tool), 0o755)
        for rel, content in (files or {}).items():
            entries[rel] = (content, 0o644)

        with tarfile.open(path, "w:gz") as tar:
            for rel, (content, mode) in entries.items():
                data = content.encode()
                info = tarfile.TarInfo(f"{root}/{rel}" if root else rel)
                info.size = len(data)
                info.mode = mode
                tar.addfile(info, io.BytesIO(data))
        return path

    return _factory


@pytest.fixture
def make_descriptor(make_archive: Callable[..., Path]) -> Callable[..., ArtifactDescriptor]:
    """Factory fixture: archive + pinned file:// descriptor for it."""

    def _factory(
        name: str = "tool",
        *,
        digest: bytes | None = None,
        pinned: bool = True,
        systems: tuple[str, ...] = (),
        env: tuple[EnvRule, ...] = (),
        archive_kwargs: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> ArtifactDescriptor:
        archive = make_archive(name, **(archive_kwargs or {}))
        expected = digest if digest is not None else sha256_file(archive)
        defaults: dict[str, Any] = {
            "name": name,
            "version": "1.0",
            "url": archive.as_uri(),
            "expected_digest": expected if pinned else None,
            "platform_predicate": SupportedPlatforms(systems=systems),
            "env": env,
            "installer": Installer.COPY,
        }
        defaults.update(overrides)
        return ArtifactDescriptor(**defaults)

    return _factory


# ---------------------------------------------------------------------------
# Manifest files
# ---------------------------------------------------------------------------


def _toml_value(value: Any) -> str:
    if isinstance(value, dict):
        inner = ", ".join(f"{k} = {_toml_value(v)}" for k, v in value.items())
        return "{ " + inner + " }"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return json.dumps(value)


def manifest_toml(
    artifacts: list[dict[str, Any]],
    profiles: dict[str, list[str]],
    shell: dict[str, Any] | None = None,
) -> str:
    """Render a small manifest as TOML text (JSON strings are TOML strings)."""
    lines: list[str] = ['project = "test"', ""]
    if shell:
        lines.append("[shell]")
        lines.extend(f"{k} = {_toml_value(v)}" for k, v in shell.items())
        lines.append("")
    for artifact in artifacts:
        lines.append("[[artifacts]]")
        lines.extend(f"{k} = {_toml_value(v)}" for k, v in artifact.items())
        lines.append("")
    lines.append("[profiles]")
    lines.extend(f"{k} = {_toml_value(v)}" for k, v in profiles.items())
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_manifest(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write a manifest TOML file and return its path."""

    def _factory(
        artifacts: list[dict[str, Any]],
        profiles: dict[str, list[str]],
        shell: dict[str, Any] | None = None,
        filename: str = "manifest.toml",
    ) -> Path:
        path = tmp_dir / filename
        path.write_text(manifest_toml(artifacts, profiles, shell), encoding="utf-8")
        return path

    return _factory


# ---------------------------------------------------------------------------
# Fake HTTP
# ---------------------------------------------------------------------------


class FakeRaw:
    """Stand-in for the urllib3 response behind ``requests.Response.raw``.

    Serves ``body`` in ``chunk_size`` pieces, sleeping ``delay`` seconds
    before each, then raises ``error`` (if any) instead of signalling EOF.
    """

    def __init__(self, body: bytes, *, chunk_size: int | None = None, delay: float = 0.0,
                 error: Exception | None = None) -> None:
        size = chunk_size or max(len(body), 1)
        self._chunks = [body[i:i + size] for i in range(0, len(body), size)]
        self._delay = delay
        self._error = error
        self.reads = 0

    def read1(self, amt: int = -1, decode_content: bool | None = None) -> bytes:
        self.reads += 1
        if self._chunks:
            if self._delay:
                time.sleep(self._delay)
            return self._chunks.pop(0)
        if self._error is not None:
            raise self._error
        return b""


class FakeResponse:
    """Stand-in for a streamed ``requests.Response``."""

    def __init__(self, raw: FakeRaw | None = None, *,
                 status_error: Exception | None = None) -> None:
        self.raw = raw or FakeRaw(b"")
        self._status_error = status_error

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def raise_for_status(self) -> None:
        if self._status_error is not None:
            raise self._status_error


class FakeSession:
    """Records requests; returns a canned response or raises."""

    def __init__(self, response: FakeResponse | None = None,
                 error: Exception | None = None) -> None:
        self.response = response or FakeResponse()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_http() -> Callable[..., FakeSession]:
    """Factory fixture: a FakeSession serving ``body`` or raising ``error``.

    ``chunk_size`` and ``delay`` make the body arrive slowly; ``chunk_error``
    is raised by the read after the last chunk.
    """

    def _factory(
        body: bytes = b"",
        *,
        error: Exception | None = None,
        status_error: Exception | None = None,
        chunk_error: Exception | None = None,
        chunk_size: int | None = None,
        delay: float = 0.0,
    ) -> FakeSession:
        raw = FakeRaw(body, chunk_size=chunk_size, delay=delay, error=chunk_error)
        response = FakeResponse(raw, status_error=status_error)
        return FakeSession(response, error=error)

    return _factory
