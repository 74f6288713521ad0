"""Create, update and delete actions for individual files."""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from pathlib import Path

from patchline.actions.base import ActionKind, PatchAction, register_action
from patchline.digester import INVALID, digest_file
from patchline.validation import (
    ABSENT,
    ALREADY_EXISTS,
    MODIFIED,
    ValidationKind,
    ValidationOption,
    ValidationResult,
)


def _exists(path: Path) -> bool:
    return os.path.lexists(path)


def _is_empty_tree(root: Path) -> bool:
    return not any(filenames for _dirpath, _dirnames, filenames in os.walk(root))


def _remove_empty_tree(root: Path) -> None:
    """Remove *root* if it holds nothing but empty directories."""
    for dirpath, _dirnames, _filenames in os.walk(root, topdown=False):
        os.rmdir(dirpath)


class FileAction(PatchAction):
    """Shared backup/revert for actions that touch one file.

    Backup copies the current target (if any) under the same relative path in
    the backup directory and remembers that it did. Revert restores only a
    copy this instance made, so files left in a reused backup directory by an
    earlier run are never restored into the installation.
    """

    def __init__(
        self,
        path: str,
        checksum: int = INVALID,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(path, checksum, logger=logger)
        self._backup: Path | None = None

    def _finding(
        self, kind: ValidationKind, message: str, *options: ValidationOption
    ) -> ValidationResult:
        return ValidationResult(
            kind=kind, path=self.path, action=self.name, message=message, options=options
        )

    def _is_modified(self, target: Path) -> bool:
        return self.checksum != INVALID and digest_file(target) != self.checksum

    def backup(self, to_dir: Path, backup_dir: Path) -> None:
        self._backup = None
        target = self.get_file(to_dir)
        if not _exists(target) or target.is_dir():
            return
        dest = backup_dir / self.path
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(target, dest, follow_symlinks=False)
        self._backup = dest

    def revert(self, to_dir: Path, backup_dir: Path) -> None:
        target = self.get_file(to_dir)
        if target.is_dir() and not target.is_symlink():
            # Emptied by reverting the files created under it.
            if _is_empty_tree(target):
                _remove_empty_tree(target)
        elif _exists(target):
            target.unlink()
        if self._backup is not None:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self._backup, target, follow_symlinks=False)

    def _write_payload(self, archive: zipfile.ZipFile, to_dir: Path) -> None:
        target = self.get_file(to_dir)
        info = archive.getinfo(self.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        elif target.is_dir():
            # Left behind by deleting the files that used to live under it.
            _remove_empty_tree(target)
        with archive.open(info) as src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
        mode = (info.external_attr >> 16) & 0o777
        if mode:
            os.chmod(target, mode)

    def build_patch_file(
        self, old_dir: Path, new_dir: Path, archive: zipfile.ZipFile
    ) -> None:
        archive.write(new_dir / self.path, arcname=self.path)


@register_action
class CreateAction(FileAction):
    kind = ActionKind.CREATE
    name = "Create"

    def validate(self, to_dir: Path) -> ValidationResult | None:
        if _exists(self.get_file(to_dir)):
            return self._finding(
                ValidationKind.CONFLICT,
                ALREADY_EXISTS,
                ValidationOption.REPLACE,
                ValidationOption.KEEP,
            )
        return None

    def apply(self, archive: zipfile.ZipFile, backup_dir: Path, to_dir: Path) -> None:
        self._logger.debug("Create %s", self.path)
        self._write_payload(archive, to_dir)


@register_action
class UpdateAction(FileAction):
    """Replaces a file wholesale; the checksum is the old file's fingerprint."""

    kind = ActionKind.UPDATE
    name = "Update"

    def validate(self, to_dir: Path) -> ValidationResult | None:
        target = self.get_file(to_dir)
        if not _exists(target):
            return self._finding(ValidationKind.ERROR, ABSENT, ValidationOption.IGNORE)
        if self._is_modified(target):
            return self._finding(
                ValidationKind.CONFLICT,
                MODIFIED,
                ValidationOption.REPLACE,
                ValidationOption.KEEP,
            )
        return None

    def apply(self, archive: zipfile.ZipFile, backup_dir: Path, to_dir: Path) -> None:
        self._logger.debug("Update %s", self.path)
        self._write_payload(archive, to_dir)


@register_action
class DeleteAction(FileAction):
    kind = ActionKind.DELETE
    name = "Delete"

    def build_patch_file(
        self, old_dir: Path, new_dir: Path, archive: zipfile.ZipFile
    ) -> None:
        pass

    def validate(self, to_dir: Path) -> ValidationResult | None:
        target = self.get_file(to_dir)
        # Already gone is the desired end state.
        if not _exists(target):
            return None
        if self._is_modified(target):
            return self._finding(
                ValidationKind.CONFLICT,
                MODIFIED,
                ValidationOption.DELETE,
                ValidationOption.KEEP,
            )
        return None

    def apply(self, archive: zipfile.ZipFile, backup_dir: Path, to_dir: Path) -> None:
        target = self.get_file(to_dir)
        self._logger.debug("Delete %s", self.path)
        if _exists(target):
            target.unlink()
