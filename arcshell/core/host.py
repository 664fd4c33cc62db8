"""Host platform detection and host tool checks.

Only the CLI calls ``detect_system``; library code always receives the host
platform as an explicit argument.
"""

from __future__ import annotations

import platform
import shutil

from pydantic import BaseModel, ConfigDict

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "riscv64gc": "riscv64",
}


class ToolCheck(BaseModel):
    """Whether one host tool is on PATH."""

    model_config = ConfigDict(frozen=True)

    name: str
    found: bool
    resolved_path: str = ""


def detect_system() -> str:
    """The running host as ``<arch>-<os>``, e.g. ``x86_64-linux``."""
    machine = platform.machine().lower()
    arch = _ARCH_ALIASES.get(machine, machine)
    return f"{arch}-{platform.system().lower()}"


def check_host_tools(names: tuple[str, ...] | list[str], path: str | None = None) -> list[ToolCheck]:
    """Look up each tool with ``shutil.which``; order is preserved."""
    checks: list[ToolCheck] = []
    for name in names:
        found = shutil.which(name, path=path)
        checks.append(ToolCheck(name=name, found=found is not None, resolved_path=found or ""))
    return checks
