"""Host platform identifiers and platform applicability predicates.

A host platform is a ``<arch>-<os>`` string such as ``x86_64-linux`` or
``aarch64-darwin``. It is always passed explicitly; nothing here reads the
running machine.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SupportedPlatforms(BaseModel):
    """Callable predicate: true when the host is one of ``systems``.

    An empty ``systems`` tuple means the artifact applies everywhere.
    """

    model_config = ConfigDict(frozen=True)

    systems: tuple[str, ...] = ()

    def __call__(self, system: str) -> bool:
        return not self.systems or system in self.systems

    def describe(self) -> str:
        return ", ".join(self.systems) if self.systems else "all"


ANY_PLATFORM = SupportedPlatforms()
