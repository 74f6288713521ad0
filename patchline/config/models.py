from pathlib import Path, PurePosixPath
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _check_ignored(entries: list[str]) -> list[str]:
    """Ignore entries are relative POSIX paths inside the tree."""
    cleaned = []
    for entry in entries:
        value = entry.strip().rstrip("/")
        path = PurePosixPath(value)
        if not value or path.is_absolute() or ".." in path.parts:
            raise ValueError(
                f"ignored_files entry must be a relative path inside the tree: {entry!r}"
            )
        cleaned.append(path.as_posix())
    return cleaned


class PatchSpec(BaseModel):
    """What a patch is built from: an old tree, a new tree and build toggles."""

    model_config = ConfigDict(frozen=True)

    old_folder: Path
    new_folder: Path
    rename_root_directory: bool = False
    ignored_files: list[str] = []

    @field_validator("ignored_files")
    @classmethod
    def validate_ignored_files(cls, v: list[str]) -> list[str]:
        return _check_ignored(v)

    @model_validator(mode="after")
    def _folders_differ(self) -> "PatchSpec":
        if self.old_folder.resolve() == self.new_folder.resolve():
            raise ValueError("old_folder and new_folder must be different directories")
        return self


class PatchDefaults(BaseModel):
    rename_root_directory: bool = False
    ignored_files: list[str] = []

    @field_validator("ignored_files")
    @classmethod
    def validate_ignored_files(cls, v: list[str]) -> list[str]:
        return _check_ignored(v)


class ApplyConfig(BaseModel):
    backup_dir: str = ".patchline/backup"
    revert_on_failure: bool = True

    @field_validator("backup_dir")
    @classmethod
    def validate_backup_dir(cls, v: str) -> str:
        # An unset ${VAR} expands to an empty string.
        if not v.strip():
            raise ValueError("backup_dir cannot be empty or whitespace")
        return v


class PatchlineConfig(BaseModel):
    patch: PatchDefaults = Field(default_factory=PatchDefaults)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
