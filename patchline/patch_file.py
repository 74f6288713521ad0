"""Patch lifecycle: create, prepare and validate, apply, revert."""

from __future__ import annotations

import logging
import os
import zipfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from patchline.actions import PatchAction
from patchline.config.models import PatchSpec
from patchline.errors import PatchFormatError
from patchline.patch import Patch
from patchline.validation import ValidationOption, ValidationResult

logger = logging.getLogger(__name__)


@dataclass
class PreparationResult:
    """A patch read from disk and resolved against one target directory."""

    patch: Patch
    patch_file: Path
    to_dir: Path
    validation_results: list[ValidationResult] = field(default_factory=list)

    @property
    def actions(self) -> list[PatchAction]:
        return self.patch.actions


@dataclass
class ApplicationResult:
    applied: bool
    applied_actions: list[PatchAction] = field(default_factory=list)
    error: Exception | None = None


def create(spec: PatchSpec, patch_file: Path) -> Patch:
    """Build a patch from *spec* and write it to *patch_file*."""
    patch = Patch.build(spec)
    patch_file.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(patch_file, "w", zipfile.ZIP_DEFLATED) as archive:
        patch.write(archive, spec)
    logger.info("Wrote patch %s", patch_file)
    return patch


def prepare_and_validate(
    patch_file: Path, to_dir: Path, action_logger: logging.Logger | None = None
) -> PreparationResult:
    """Read *patch_file* and validate its actions against *to_dir*.

    Nothing on disk is modified. *action_logger*, when given, is handed to
    every decoded action.
    """
    # abspath, not resolve(): a symlinked install dir keeps its own name.
    to_dir = Path(os.path.abspath(to_dir))
    try:
        with zipfile.ZipFile(patch_file) as archive:
            patch = Patch.read(archive, str(patch_file), action_logger)
    except zipfile.BadZipFile as e:
        raise PatchFormatError(str(patch_file), str(e)) from e

    results = patch.validate(to_dir)
    for result in results:
        logger.info("Validation: %s", result)
    return PreparationResult(
        patch=patch, patch_file=patch_file, to_dir=to_dir, validation_results=results
    )


def apply(
    preparation: PreparationResult,
    options: Mapping[str, ValidationOption] | None,
    backup_dir: Path,
) -> ApplicationResult:
    """Back up, then apply, every action that should apply.

    An action is recorded as applied before it runs, so a partial effect is
    still reverted. A failure stops application and is returned in the
    result; reverting is the caller's decision.
    """
    to_dir = preparation.to_dir
    actions = [a for a in preparation.actions if a.should_apply(to_dir, options)]
    backup_dir.mkdir(parents=True, exist_ok=True)

    applied: list[PatchAction] = []
    with zipfile.ZipFile(preparation.patch_file) as archive:
        try:
            for action in actions:
                action.backup(to_dir, backup_dir)
            for action in actions:
                applied.append(action)
                action.apply(archive, backup_dir, to_dir)
        except (OSError, KeyError) as e:
            logger.error("Applying patch to %s failed: %s", to_dir, e)
            return ApplicationResult(applied=False, applied_actions=applied, error=e)

    logger.info("Applied %d of %d actions to %s", len(applied), len(preparation.actions), to_dir)
    return ApplicationResult(applied=True, applied_actions=applied)


def revert(
    preparation: PreparationResult,
    applied_actions: Sequence[PatchAction],
    backup_dir: Path,
) -> None:
    """Undo *applied_actions* in reverse order. Failures propagate."""
    to_dir = preparation.to_dir
    for action in reversed(applied_actions):
        action.revert(to_dir, backup_dir)
    logger.info("Reverted %d actions in %s", len(applied_actions), to_dir)
