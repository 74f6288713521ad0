"""Reversible patch actions."""

from patchline.actions.base import (
    ActionKind,
    PatchAction,
    read_action,
    register_action,
    write_action,
)
from patchline.actions.files import CreateAction, DeleteAction, FileAction, UpdateAction
from patchline.actions.rename_root import RenameRootDirectoryAction

__all__ = [
    "ActionKind",
    "CreateAction",
    "DeleteAction",
    "FileAction",
    "PatchAction",
    "RenameRootDirectoryAction",
    "UpdateAction",
    "read_action",
    "register_action",
    "write_action",
]
