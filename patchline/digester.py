"""Content fingerprints for files and directory trees."""

from __future__ import annotations

import hashlib
import os
import stat
from collections.abc import Iterable
from pathlib import Path

# Marker for "no fingerprint check applies"; digest_file never returns it.
INVALID = -1

_CONTENT_BITS = 60
_CONTENT_MASK = (1 << _CONTENT_BITS) - 1
EXECUTABLE = 1 << 61
LINK = 1 << 62

_CHUNK = 64 * 1024


def compute_hash(content: bytes) -> int:
    """BLAKE2b-64 of *content*, truncated to the content bits."""
    digest = hashlib.blake2b(content, digest_size=8).digest()
    return int.from_bytes(digest, "big") & _CONTENT_MASK


def _hash_stream(path: Path) -> int:
    h = hashlib.blake2b(digest_size=8)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return int.from_bytes(h.digest(), "big") & _CONTENT_MASK


def digest_file(path: Path) -> int:
    """Fingerprint a single file or symbolic link.

    Links are fingerprinted by their target string so a dangling link still
    has a stable value. Regular files carry the ``EXECUTABLE`` bit when any
    execute permission is set.
    """
    st = os.lstat(path)
    if stat.S_ISLNK(st.st_mode):
        return LINK | compute_hash(os.readlink(path).encode())
    value = _hash_stream(path)
    if st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
        value |= EXECUTABLE
    return value


def is_link_digest(value: int) -> bool:
    return value != INVALID and bool(value & LINK)


def _is_ignored(rel: str, ignored: set[str]) -> bool:
    """True if *rel* equals an ignore entry or lies beneath one."""
    if rel in ignored:
        return True
    parts = rel.split("/")
    return any("/".join(parts[:i]) in ignored for i in range(1, len(parts)))


def digest_files(root: Path, ignored: Iterable[str] = ()) -> dict[str, int]:
    """Map every file under *root* (relative POSIX path) to its fingerprint.

    Keys are inserted in sorted order. Directories are not listed. A missing
    root yields an empty map.
    """
    if not root.is_dir():
        return {}
    ignore = {p.strip("/") for p in ignored}
    files: dict[str, int] = {}
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root).as_posix()
        if _is_ignored(rel, ignore):
            continue
        if p.is_symlink() or p.is_file():
            files[rel] = digest_file(p)
    return dict(sorted(files.items()))
