"""Patch model: an ordered action list plus the archive that carries it."""

from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterable
from pathlib import Path

from patchline.actions import (
    CreateAction,
    DeleteAction,
    PatchAction,
    RenameRootDirectoryAction,
    UpdateAction,
    read_action,
    write_action,
)
from patchline.codec import DataReader, DataWriter
from patchline.config.models import PatchSpec
from patchline.digester import digest_files, is_link_digest
from patchline.errors import PatchFormatError
from patchline.validation import ValidationResult

logger = logging.getLogger(__name__)

META_ENTRY = "__patchline__/meta"
MAGIC = 0x50544348  # "PTCH"
FORMAT_VERSION = 1


class Patch:
    """Actions in application order, plus the paths excluded from digests."""

    def __init__(
        self, actions: Iterable[PatchAction], ignored_files: Iterable[str] = ()
    ) -> None:
        self.actions = list(actions)
        self.ignored_files = list(ignored_files)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, spec: PatchSpec) -> Patch:
        """Diff ``spec.old_folder`` against ``spec.new_folder``.

        Deletes come first, then updates, then creates, each sorted by path.
        The root rename, when requested, is always last so every file action
        runs against the directory name it was validated with.
        """
        old = digest_files(spec.old_folder, spec.ignored_files)
        new = digest_files(spec.new_folder, spec.ignored_files)

        actions: list[PatchAction] = []
        for path in sorted(old.keys() - new.keys()):
            actions.append(DeleteAction(path, old[path]))
        for path in sorted(old.keys() & new.keys()):
            if old[path] == new[path]:
                continue
            if is_link_digest(new[path]):
                logger.warning("Skipping symbolic link %s: links are not patched", path)
                continue
            actions.append(UpdateAction(path, old[path]))
        for path in sorted(new.keys() - old.keys()):
            if is_link_digest(new[path]):
                logger.warning("Skipping symbolic link %s: links are not patched", path)
                continue
            actions.append(CreateAction(path))

        if spec.rename_root_directory:
            actions.append(
                RenameRootDirectoryAction(spec.old_folder.name, spec.new_folder.name)
            )

        logger.info(
            "Built patch %s -> %s: %d actions", spec.old_folder, spec.new_folder, len(actions)
        )
        return cls(actions, spec.ignored_files)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def write(self, archive: zipfile.ZipFile, spec: PatchSpec) -> None:
        """Write metadata and every action's payload into *archive*."""
        buf = io.BytesIO()
        writer = DataWriter(buf)
        writer.write_int(MAGIC)
        writer.write_int(FORMAT_VERSION)
        writer.write_int(len(self.ignored_files))
        for path in self.ignored_files:
            writer.write_utf(path)
        writer.write_int(len(self.actions))
        for action in self.actions:
            write_action(writer, action)
        archive.writestr(META_ENTRY, buf.getvalue())

        for action in self.actions:
            action.build_patch_file(spec.old_folder, spec.new_folder, archive)

    @classmethod
    def read(
        cls,
        archive: zipfile.ZipFile,
        source: str = "<archive>",
        logger: logging.Logger | None = None,
    ) -> Patch:
        try:
            raw = archive.read(META_ENTRY)
        except KeyError:
            raise PatchFormatError(source, "missing metadata entry") from None

        reader = DataReader(io.BytesIO(raw))
        try:
            if reader.read_int() != MAGIC:
                raise PatchFormatError(source, "bad magic")
            version = reader.read_int()
            if version != FORMAT_VERSION:
                raise PatchFormatError(source, f"unsupported format version {version}")
            ignored = [reader.read_utf() for _ in range(reader.read_int())]
            count = reader.read_int()
            actions = [read_action(reader, source, logger) for _ in range(count)]
        except (EOFError, UnicodeDecodeError) as e:
            raise PatchFormatError(source, str(e)) from e
        return cls(actions, ignored)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def digest_files(self, root: Path) -> dict[str, int]:
        return digest_files(root, self.ignored_files)

    def validate(self, to_dir: Path) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        for action in self.actions:
            if not action.should_apply(to_dir):
                continue
            result = action.validate(to_dir)
            if result is not None:
                results.append(result)
        return results
