"""Renaming the installation root directory as part of a patch."""

from __future__ import annotations

import logging
import os
import zipfile
from collections.abc import Mapping
from pathlib import Path

from patchline.actions.base import ActionKind, PatchAction, register_action
from patchline.codec import DataReader, DataWriter
from patchline.digester import INVALID
from patchline.validation import ValidationOption, ValidationResult


@register_action
class RenameRootDirectoryAction(PatchAction):
    """Moves the installation directory to a sibling with the new tree's name.

    The step is best effort. It never produces a validation finding and an
    apply that cannot rename leaves the installation where it is. Revert only
    undoes a rename this instance actually performed.
    """

    kind = ActionKind.RENAME_ROOT
    name = "RenameRoot"

    def __init__(
        self,
        old_name: str,
        new_name: str,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(old_name, INVALID, logger=logger)
        self._old_name = old_name
        self._new_name = new_name
        # Set once, at the single point of effect in apply(). Never persisted.
        self._renamed = False

    @property
    def old_name(self) -> str:
        return self._old_name

    @property
    def new_name(self) -> str:
        return self._new_name

    @property
    def renamed(self) -> bool:
        return self._renamed

    def get_file(self, base_dir: Path) -> Path:
        return base_dir

    def should_apply(
        self, to_dir: Path, options: Mapping[str, ValidationOption] | None = None
    ) -> bool:
        # A moved or custom-named installation is left alone.
        return to_dir.name == self._old_name

    def validate(self, to_dir: Path) -> ValidationResult | None:
        return None

    def backup(self, to_dir: Path, backup_dir: Path) -> None:
        pass

    def apply(self, archive: zipfile.ZipFile, backup_dir: Path, to_dir: Path) -> None:
        source = self.get_file(to_dir)
        target = source.with_name(self._new_name)
        self._logger.info("Rename root directory: from %s to %s", source, target)

        # The existing entry may be user data.
        if os.path.lexists(target):
            self._logger.info("Rename root directory: skipped (target path exists)")
            return

        try:
            os.rename(source, target)
        except OSError as e:
            self._logger.warning("Rename root directory: skipped (%s)", e)
            return
        self._renamed = True

    def revert(self, to_dir: Path, backup_dir: Path) -> None:
        original = self.get_file(to_dir)
        if not self._renamed or os.path.lexists(original):
            return
        renamed = original.with_name(self._new_name)
        self._logger.info("Rename root directory: reverting %s to %s", renamed, original)
        os.rename(renamed, original)

    def encode(self, writer: DataWriter) -> None:
        super().encode(writer)
        writer.write_utf(self._old_name)
        writer.write_utf(self._new_name)

    @classmethod
    def decode(cls, reader: DataReader, logger: logging.Logger | None = None):
        reader.read_utf()
        reader.read_long()
        old_name = reader.read_utf()
        new_name = reader.read_utf()
        return cls(old_name, new_name, logger=logger)

    def _fields(self) -> tuple:
        return super()._fields() + (self._old_name, self._new_name)
