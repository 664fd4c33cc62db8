"""Artifact models: what to fetch, and what a successful fetch produced."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from arcshell.core.hasher import to_sri
from arcshell.models.platform import ANY_PLATFORM


class Installer(str, Enum):
    """How an unpacked archive becomes the artifact's output directory.

    * ``copy`` — the selected source root is used as-is.
    * ``rust-installer`` — run the Rust dist ``install.sh`` into the output.
    """

    COPY = "copy"
    RUST_INSTALLER = "rust-installer"


class EnvRule(BaseModel):
    """Set (``value``) or unset (``value is None``) one variable.

    ``{out}`` in a value is replaced with the artifact's extracted path.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: str | None = None

    def resolve(self, out: Path | None = None) -> str | None:
        if self.value is None or out is None:
            return self.value
        return self.value.replace("{out}", str(out))


class Component(BaseModel):
    """An extra rust-installer archive installed into its artifact's output.

    Used for target standard libraries and ``rust-src``. Verified the same
    way as the main archive.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    expected_digest: bytes | None = None

    @property
    def is_pinned(self) -> bool:
        return self.expected_digest is not None

    @property
    def expected_sri(self) -> str:
        if self.expected_digest is None:
            return ""
        return to_sri(self.expected_digest)


class ArtifactDescriptor(BaseModel):
    """Immutable record of one downloadable toolchain component.

    ``expected_digest`` is the raw SHA-256 of the downloaded archive. A
    descriptor without one, or with an unpinned component, is *unpinned* and
    can only be prefetched. ``components`` are installed after the main
    archive, into the same output, by the rust installer.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    url: str
    expected_digest: bytes | None = None
    platform_predicate: Callable[[str], bool] = Field(
        default=ANY_PLATFORM, exclude=True
    )
    source_root: str | None = None
    bin_dirs: tuple[str, ...] = ("bin",)
    env: tuple[EnvRule, ...] = ()
    installer: Installer = Installer.COPY
    components: tuple[Component, ...] = ()

    @property
    def is_pinned(self) -> bool:
        return self.expected_digest is not None and all(
            c.is_pinned for c in self.components
        )

    @property
    def component_digests(self) -> tuple[bytes, ...]:
        """Expected component digests, in order. Only meaningful when pinned."""
        return tuple(c.expected_digest or b"" for c in self.components)

    @property
    def expected_sri(self) -> str:
        """The expected digest in ``sha256-<base64>`` form, or ``""``."""
        if self.expected_digest is None:
            return ""
        return to_sri(self.expected_digest)

    def applies_to(self, system: str) -> bool:
        return bool(self.platform_predicate(system))


class FetchedArtifact(BaseModel):
    """A descriptor materialized in the local store.

    Only Fetch & Verify creates these; ``digest`` and ``component_digests``
    are the SHA-256 values the store entry was recorded under.
    """

    model_config = ConfigDict(frozen=True)

    descriptor: ArtifactDescriptor
    local_path: Path
    digest: bytes
    component_digests: tuple[bytes, ...] = ()
    verified: bool = False
    cache_hit: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    def search_paths(self) -> list[Path]:
        """Executable directories of this artifact, in declaration order."""
        return [self.local_path / d for d in self.descriptor.bin_dirs]
