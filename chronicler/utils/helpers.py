"""Filesystem helpers shared by the history and memory stores."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def ensure_dir(path: Path) -> Path:
    """Create *path* (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(name: str) -> str:
    """Replace characters that are not valid in file names."""
    return _UNSAFE_CHARS.sub("_", name).strip() or "_"


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write *content* to *path* so readers see either the old or the new file.

    The data goes to a hidden temp file in the same directory, is fsynced and
    then renamed over the target with ``os.replace``.
    """
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def write_new_text(path: Path, content: str, *, encoding: str = "utf-8") -> Path:
    """Write *content* to *path*, or to ``<stem>-<n><suffix>`` if *path* exists.

    Never overwrites an existing file. Returns the path actually written.
    """
    ensure_dir(path.parent)
    candidate = path
    n = 1
    while True:
        try:
            with open(candidate, "x", encoding=encoding) as f:
                f.write(content)
            return candidate
        except FileExistsError:
            candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
            n += 1
