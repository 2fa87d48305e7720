"""Atomic file writes for saving config text.

A half-written config file is as bad as one with a silently dropped key, so
saves go through a temp file that is fsynced and then renamed over the
target.  The directory is fsynced afterwards so the rename is durable too.
The temp file gets a random name from ``tempfile.mkstemp`` and a symlinked
target is refused outright.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Union

from ..errors import UnsafeWriteError


def atomic_write_text(
    target_path: Union[str, Path],
    text: str,
    mode: int = 0o600,
    encoding: str = "utf-8",
) -> Path:
    """Write *text* to *target_path* atomically.

    Args:
        target_path: Destination file; created or replaced.
        text: Content to write.
        mode: POSIX permission bits for the new file.
        encoding: Text encoding.

    Returns:
        The target path.

    Raises:
        UnsafeWriteError: If *target_path* is a symlink.
    """
    target = Path(target_path)
    if target.is_symlink():
        raise UnsafeWriteError(
            f"Refusing to write to symlink: {target} -> {os.readlink(str(target))}"
        )

    raw = text.encode(encoding)
    fd: int | None = None
    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
        # os.write() may write short on large payloads
        total = 0
        while total < len(raw):
            written = os.write(fd, raw[total:])
            if written == 0:
                raise OSError("os.write returned 0 bytes")
            total += written
        os.fsync(fd)
        os.close(fd)
        fd = None

        if sys.platform != "win32":
            os.chmod(tmp_path, mode)

        os.replace(tmp_path, str(target))
        tmp_path = None

        # Fsync the directory so the rename itself survives a crash
        try:
            dir_fd = os.open(str(target.parent), os.O_RDONLY | os.O_DIRECTORY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except (OSError, AttributeError):
            pass  # Best-effort; O_DIRECTORY is POSIX only
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
    return target
