"""arcshell: reproducible cross-toolchain development shells for ArceOS.

Resolves a named profile against a host platform, fetches and verifies the
pinned toolchain archives into a content-addressed store, and composes the
search paths and variable overrides an interactive shell is launched with.
"""

__version__ = "0.1.0"
__description__ = "Reproducible cross-toolchain development shells for ArceOS"

from arcshell.core.composer import EnvironmentComposer
from arcshell.core.registry import ArtifactRegistry

__all__ = ["ArtifactRegistry", "EnvironmentComposer", "__version__"]
