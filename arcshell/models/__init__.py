"""arcshell data models — all Pydantic v2, all frozen (immutable)."""

from arcshell.models.artifacts import (
    ArtifactDescriptor,
    Component,
    EnvRule,
    FetchedArtifact,
    Installer,
)
from arcshell.models.environment import ComposedEnvironment
from arcshell.models.manifest import (
    LockFile,
    Manifest,
    ManifestArtifact,
    ManifestComponent,
    ShellRules,
)
from arcshell.models.platform import ANY_PLATFORM, SupportedPlatforms

__all__ = [
    # platform
    "ANY_PLATFORM",
    "SupportedPlatforms",
    # artifacts
    "ArtifactDescriptor",
    "Component",
    "EnvRule",
    "FetchedArtifact",
    "Installer",
    # environment
    "ComposedEnvironment",
    # manifest
    "LockFile",
    "Manifest",
    "ManifestArtifact",
    "ManifestComponent",
    "ShellRules",
]
