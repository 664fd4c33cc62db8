"""Manifest and lock file models.

The manifest (TOML) declares artifacts in registration order, the profiles
that select them, and the shell-level variable rules. The lock file (JSON)
records digests for artifacts the manifest leaves unpinned, keyed by URL.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from arcshell.models.artifacts import Installer


class ManifestComponent(BaseModel):
    """One entry of an artifact's ``components`` list."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    hash: str | None = None


class ManifestArtifact(BaseModel):
    """One ``[[artifacts]]`` table.

    ``hash`` is an SRI string (``sha256-<base64>``). Several entries may
    share a ``name`` when they cover disjoint ``platforms``. ``components``
    require the rust installer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    version: str
    url: str
    hash: str | None = None
    platforms: tuple[str, ...] = ()
    source_root: str | None = None
    bin_dirs: tuple[str, ...] = ("bin",)
    unset: tuple[str, ...] = ()
    env: dict[str, str] = Field(default_factory=dict)
    installer: Installer = Installer.COPY
    components: tuple[ManifestComponent, ...] = ()
    description: str = ""


class ShellRules(BaseModel):
    """The ``[shell]`` table: rules applied after every artifact's rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    unset: tuple[str, ...] = ()
    env: dict[str, str] = Field(default_factory=dict)
    host_tools: tuple[str, ...] = ()


class Manifest(BaseModel):
    """A full environment manifest."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    project: str = "arceos"
    shell: ShellRules = ShellRules()
    artifacts: tuple[ManifestArtifact, ...] = ()
    profiles: dict[str, tuple[str, ...]] = Field(default_factory=dict)


class LockFile(BaseModel):
    """Pinned digests for unpinned manifest entries, URL -> SRI."""

    model_config = ConfigDict(frozen=True)

    version: int = 1
    digests: dict[str, str] = Field(default_factory=dict)
