"""The reversible action protocol shared by every kind of patch step."""

from __future__ import annotations

import logging
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import IntEnum
from pathlib import Path
from typing import ClassVar, TypeVar

from patchline.codec import DataReader, DataWriter
from patchline.digester import INVALID
from patchline.errors import PatchFormatError
from patchline.validation import SKIP_OPTIONS, ValidationOption, ValidationResult


class ActionKind(IntEnum):
    """Persisted variant tag; values are part of the patch format."""

    CREATE = 1
    UPDATE = 2
    DELETE = 3
    RENAME_ROOT = 4


class PatchAction(ABC):
    """One reversible unit of a patch.

    An action is identified by a path relative to the installation directory
    and the fingerprint the target is expected to have (``INVALID`` when no
    check applies). Apply runs at most once per instance; revert runs only
    for actions the engine recorded as applied.
    """

    kind: ClassVar[ActionKind]
    name: ClassVar[str]

    def __init__(
        self,
        path: str,
        checksum: int = INVALID,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = path
        self.checksum = checksum
        self._logger = logger or logging.getLogger(type(self).__module__)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def get_file(self, base_dir: Path) -> Path:
        return base_dir / self.path

    def should_apply(
        self, to_dir: Path, options: Mapping[str, ValidationOption] | None = None
    ) -> bool:
        """Whether this action takes part in applying to *to_dir*."""
        if not options:
            return True
        return options.get(self.path, ValidationOption.NONE) not in SKIP_OPTIONS

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def build_patch_file(
        self, old_dir: Path, new_dir: Path, archive: zipfile.ZipFile
    ) -> None:
        """Store whatever payload apply will need. Most actions need none."""

    @abstractmethod
    def validate(self, to_dir: Path) -> ValidationResult | None: ...

    @abstractmethod
    def backup(self, to_dir: Path, backup_dir: Path) -> None: ...

    @abstractmethod
    def apply(self, archive: zipfile.ZipFile, backup_dir: Path, to_dir: Path) -> None: ...

    @abstractmethod
    def revert(self, to_dir: Path, backup_dir: Path) -> None: ...

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def encode(self, writer: DataWriter) -> None:
        writer.write_utf(self.path)
        writer.write_long(self.checksum)

    @classmethod
    def decode(cls, reader: DataReader, logger: logging.Logger | None = None):
        path = reader.read_utf()
        checksum = reader.read_long()
        return cls(path, checksum, logger=logger)

    def _fields(self) -> tuple:
        return (self.path, self.checksum)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other._fields() == self._fields()

    def __hash__(self) -> int:
        return hash((type(self), self._fields()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self._fields()!r}"


_A = TypeVar("_A", bound=type[PatchAction])
_ACTION_TYPES: dict[ActionKind, type[PatchAction]] = {}


def register_action(cls: _A) -> _A:
    """Class decorator binding a concrete action to its variant tag."""
    _ACTION_TYPES[cls.kind] = cls
    return cls


def write_action(writer: DataWriter, action: PatchAction) -> None:
    writer.write_int(int(action.kind))
    action.encode(writer)


def read_action(
    reader: DataReader, source: str = "<stream>", logger: logging.Logger | None = None
) -> PatchAction:
    tag = reader.read_int()
    try:
        cls = _ACTION_TYPES[ActionKind(tag)]
    except (ValueError, KeyError):
        raise PatchFormatError(source, f"unknown action tag {tag}") from None
    return cls.decode(reader, logger=logger)
