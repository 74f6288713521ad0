"""Exception types shared across the patch pipeline."""

from __future__ import annotations


class PatchError(Exception):
    """Base class for failures raised by the patch engine."""


class PatchFormatError(PatchError):
    """Raised when a patch archive cannot be decoded."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed patch {source}: {reason}")


class EnvironmentLimitation(Exception):
    """The host environment cannot support an operation; not a defect in patchline."""


class PrincipalNotFoundError(EnvironmentLimitation):
    """Raised when a well-known security principal cannot be resolved."""

    def __init__(self, principal: str, cause: Exception | None = None) -> None:
        self.principal = principal
        msg = f"Security principal '{principal}' could not be resolved"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
        self.__cause__ = cause
