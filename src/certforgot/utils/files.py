"""Atomic file writes for local installers and state files."""

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, data: bytes, mode: int = 0o644) -> None:
    """
    Write bytes to a file so readers see either the old or the new content.

    The data is written to a temporary file in the same directory,
    flushed to disk, then renamed over the destination. The temporary
    file is removed if any step fails.

    Args:
        path: Destination file
        data: Content to write
        mode: Permission bits of the new file

    Raises:
        OSError: If the file cannot be written
    """
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as temp_file:
            temp_file.write(data)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.chmod(temp_name, mode)
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
