"""Apply a ComposedEnvironment to a process and hand over to a shell.

``render_hook`` prints the environment as a POSIX shell snippet (suitable
for ``eval``); ``launch`` starts an interactive shell, or runs one command,
with the environment applied.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping

from arcshell.models.environment import ComposedEnvironment

logger = logging.getLogger(__name__)

# Marker exported into launched shells, holding the profile name.
SHELL_MARKER = "IN_ARCSHELL"


def render_hook(env: ComposedEnvironment) -> str:
    """Render ``env`` as POSIX shell statements."""
    lines = [f"# arcshell {env.profile} ({env.system}) {env.environment_hash}"]
    lines.extend(f"unset {name}" for name in env.unset)
    for name, value in env.variables.items():
        lines.append(f"export {name}={shlex.quote(value)}")
    if env.search_paths:
        prefix = os.pathsep.join(str(p) for p in env.search_paths)
        lines.append(f'export PATH={shlex.quote(prefix)}"${{PATH:+:$PATH}}"')
    return "\n".join(lines) + "\n"


def process_environment(
    env: ComposedEnvironment,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """The variables a child process should see, derived from ``base``."""
    result = dict(os.environ if base is None else base)
    for name in env.unset:
        result.pop(name, None)
    result.update(env.variables)

    entries = [str(p) for p in env.search_paths]
    if result.get("PATH"):
        entries.append(result["PATH"])
    if entries:
        result["PATH"] = os.pathsep.join(entries)
    result[SHELL_MARKER] = env.profile
    return result


def launch(
    env: ComposedEnvironment,
    *,
    shell: str | None = None,
    command: str | None = None,
    base: Mapping[str, str] | None = None,
) -> int:
    """Run an interactive shell (or ``shell -c command``); return its exit code."""
    child_env = process_environment(env, base)
    program = shell or child_env.get("SHELL") or "/bin/sh"
    argv = [program] if command is None else [program, "-c", command]
    logger.info("Launching %s with profile %s", " ".join(argv), env.profile)
    return subprocess.run(argv, env=child_env).returncode
