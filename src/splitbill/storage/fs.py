"""Atomic writes for the config file."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from splitbill.core.config import SplitbillConfig, serialize_config


def atomic_write(path: Path, content: str) -> None:
    """Write *content* to *path* via a sibling temp file, fsync, then rename.

    Readers see either the old file or the new one, never a partial write.

    Raises:
        FileNotFoundError: If the parent directory does not exist.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".tmp.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_config(path: Path, config: SplitbillConfig, *, overwrite: bool = False) -> None:
    """Write *config* in canonical form.

    Raises:
        FileExistsError: If *path* exists and *overwrite* is false.
    """
    if path.exists() and not overwrite:
        raise FileExistsError(f"Config already exists: {path}")
    atomic_write(path, serialize_config(config))
