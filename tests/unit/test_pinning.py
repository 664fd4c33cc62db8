"""Tests for trust-on-first-use pinning into the lock file."""

from __future__ import annotations

from arcshell.core.hasher import sha256_file, to_sri
from arcshell.core.pinning import update_lock
from arcshell.core.registry import ArtifactRegistry
from arcshell.models.artifacts import Installer
from arcshell.models.manifest import LockFile, Manifest, ManifestArtifact, ManifestComponent

INSTALL_SH = """#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    --prefix=*) prefix="${arg#--prefix=}" ;;
  esac
done
mkdir -p "$prefix"
cp -R payload/. "$prefix/"
"""


class TestUpdateLock:
    def test_pins_unpinned_artifacts(self, fetcher, make_archive):
        pinned_archive = make_archive("gcc")
        loose_archive = make_archive("clang")
        manifest = Manifest(
            artifacts=(
                ManifestArtifact(name="gcc", version="1", url=pinned_archive.as_uri(),
                                 hash=to_sri(sha256_file(pinned_archive))),
                ManifestArtifact(name="clang", version="1", url=loose_archive.as_uri()),
            ),
            profiles={"default": ("gcc", "clang")},
        )
        registry = ArtifactRegistry(manifest, LockFile(digests={"https://keep.invalid/x": "sha256-x"}))

        lock, pinned = update_lock(registry, fetcher, "x86_64-linux")

        assert [a.name for a in pinned] == ["clang"]
        assert lock.digests[loose_archive.as_uri()] == to_sri(sha256_file(loose_archive))
        assert lock.digests["https://keep.invalid/x"] == "sha256-x"
        assert pinned_archive.as_uri() not in lock.digests

        relocked = ArtifactRegistry(manifest, lock)
        names = [d.name for d in relocked.list_for("default", "x86_64-linux")]
        assert names == ["gcc", "clang"]
        assert fetcher.fetch(relocked.descriptors[1]).cache_hit

    def test_nothing_to_pin(self, fetcher, make_archive):
        archive = make_archive("gcc")
        manifest = Manifest(
            artifacts=(ManifestArtifact(name="gcc", version="1", url=archive.as_uri(),
                                        hash=to_sri(sha256_file(archive))),),
            profiles={"default": ("gcc",)},
        )
        lock, pinned = update_lock(ArtifactRegistry(manifest), fetcher, "x86_64-linux")
        assert pinned == []
        assert lock.digests == {}

    def test_pins_component_urls(self, fetcher, make_archive):
        rust = make_archive("rust", tools=(), files={"install.sh": INSTALL_SH, "payload/bin/rustc": "rustc"})
        std = make_archive(
            "rust-std",
            tools=(),
            files={"install.sh": INSTALL_SH, "payload/lib/rustlib/riscv64gc-unknown-none-elf/x": "std"},
        )
        manifest = Manifest(
            artifacts=(
                ManifestArtifact(
                    name="rust", version="1", url=rust.as_uri(),
                    hash=to_sri(sha256_file(rust)),
                    installer=Installer.RUST_INSTALLER,
                    components=(ManifestComponent(url=std.as_uri()),),
                ),
            ),
            profiles={"default": ("rust",)},
        )

        lock, pinned = update_lock(ArtifactRegistry(manifest), fetcher, "x86_64-linux")

        assert [a.name for a in pinned] == ["rust"]
        assert lock.digests == {std.as_uri(): to_sri(sha256_file(std))}

        (descriptor,) = ArtifactRegistry(manifest, lock).list_for("default", "x86_64-linux")
        fetched = fetcher.fetch(descriptor)
        assert fetched.cache_hit
        assert (fetched.local_path / "lib" / "rustlib" / "riscv64gc-unknown-none-elf").is_dir()
