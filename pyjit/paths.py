"""Path resolution: validate user-supplied directories and probe write access."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from .errors import JitIOError, NotADirectoryPathError, PathNotFoundError, WritePermissionError

logger = logging.getLogger(__name__)

PROBE_PREFIX = ".jit-probe-"


def resolve_root(path: Union[str, Path]) -> Path:
    """Return the directory to work in.

    Empty input means the current working directory. Anything else must be an
    existing, writable directory and is returned as given (not made absolute,
    symlinks not resolved).
    """
    if not str(path):
        return Path.cwd()
    validate_dir_path(path)
    check_write_permission(path)
    return Path(path)


def validate_dir_path(path: Union[str, Path]) -> None:
    """Raise PathNotFoundError / NotADirectoryPathError unless path is a directory."""
    p = Path(path)
    try:
        p.stat()
    except FileNotFoundError as e:
        raise PathNotFoundError(f"{p} does not exist") from e
    except NotADirectoryError as e:
        raise PathNotFoundError(f"{p} does not exist (a parent is not a directory)") from e
    except PermissionError as e:
        raise WritePermissionError(f"cannot access {p}: {e.strerror or e}") from e
    except OSError as e:
        raise JitIOError(f"cannot stat {p}: {e.strerror or e}") from e
    if not p.is_dir():
        raise NotADirectoryPathError(f"{p} is not a directory")


def check_write_permission(path: Union[str, Path]) -> None:
    """Create and delete a zero-byte probe file in path; raise WritePermissionError if not writable."""
    try:
        fd, probe = tempfile.mkstemp(dir=str(path), prefix=PROBE_PREFIX)
    except OSError as e:
        raise WritePermissionError(f"you don't have write permissions here -> {path}") from e
    try:
        os.close(fd)
    except OSError as e:
        logger.warning("Error closing temporary file %s: %s", probe, e)
    try:
        os.unlink(probe)
    except OSError as e:
        logger.warning("Error removing temporary file %s: %s", probe, e)
