"""Error taxonomy for provisioning.

Every error carries the process exit code the CLI reports for it. None of
them are caught inside the library; they surface verbatim to the caller.
"""

from __future__ import annotations


class ProvisioningError(RuntimeError):
    """Base class for every failure raised while provisioning a shell."""

    exit_code: int = 1


class ConfigError(ProvisioningError):
    """Unknown profile or artifact, or an invalid manifest. Not retryable."""

    exit_code = 3


class FetchError(ProvisioningError):
    """Network or transport failure. Safe to retry by re-invoking.

    ``timed_out`` is set when the caller-supplied timeout elapsed.
    """

    exit_code = 4

    def __init__(self, message: str, *, url: str = "", timed_out: bool = False) -> None:
        super().__init__(message)
        self.url = url
        self.timed_out = timed_out


class IntegrityError(ProvisioningError):
    """Downloaded or stored content does not match its pinned digest."""

    exit_code = 5

    def __init__(self, name: str, expected: str, computed: str) -> None:
        super().__init__(
            f"Integrity check failed for {name!r}: "
            f"expected {expected}, got {computed}"
        )
        self.name = name
        self.expected = expected
        self.computed = computed


class InstallError(ProvisioningError):
    """An artifact's install step failed after verification."""

    exit_code = 6
