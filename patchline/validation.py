"""Findings produced while validating a patch against a target directory."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ValidationKind(str, Enum):
    INFO = "info"
    CONFLICT = "conflict"
    ERROR = "error"


class ValidationOption(str, Enum):
    """Resolutions a caller may choose for a conflicting path."""

    NONE = "none"
    IGNORE = "ignore"
    REPLACE = "replace"
    DELETE = "delete"
    KEEP = "keep"


# Options that tell the engine to leave the path untouched.
SKIP_OPTIONS = frozenset({ValidationOption.IGNORE, ValidationOption.KEEP})

ABSENT = "Absent"
ALREADY_EXISTS = "Already exists"
MODIFIED = "Modified"


@dataclass(frozen=True)
class ValidationResult:
    kind: ValidationKind
    path: str
    action: str
    message: str
    options: tuple[ValidationOption, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.action} {self.path}: {self.message}"
