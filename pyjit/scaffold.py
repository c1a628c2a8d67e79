"""Scaffolding: create the .jit directory, its fixed layout, and the separate-dir link.

Every entry created here is recorded on an UndoLog so a failed initialization
can remove exactly what it made and nothing else.
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from .constants import DEFAULT_FILE_PERM
from .errors import AlreadyInitializedError, InsufficientPrivilegeError, JitIOError
from .layout import REPOSITORY_LAYOUT, EntryKind

logger = logging.getLogger(__name__)

# Windows: ERROR_PRIVILEGE_NOT_HELD
_WINERROR_PRIVILEGE_NOT_HELD = 1314


class UndoLog:
    """Ordered list of inverse actions, run newest first on rollback."""

    def __init__(self) -> None:
        self._actions: list[tuple[str, Callable[[], None]]] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, description: str, action: Callable[[], None]) -> None:
        self._actions.append((description, action))

    def rollback(self) -> None:
        """Run all actions in reverse. Failures are logged; the rest still run."""
        while self._actions:
            description, action = self._actions.pop()
            try:
                action()
                logger.debug("undo: %s", description)
            except OSError as e:
                logger.warning("undo failed (%s): %s", description, e)

    def discard(self) -> None:
        self._actions.clear()


def _remove_file(path: Path) -> Callable[[], None]:
    return lambda: path.unlink()


def _remove_dir(path: Path) -> Callable[[], None]:
    return lambda: path.rmdir()


def _record(undo: Optional[UndoLog], description: str, action: Callable[[], None]) -> None:
    if undo is not None:
        undo.push(description, action)


def scaffold(
    root: Union[str, Path],
    separate: bool,
    bare: bool,
    permission: int,
    undo: Optional[UndoLog] = None,
) -> Path:
    """Create the repository layout at root; return root.

    In the default mode (not bare, no separate dir) root itself is created with
    mkdir, which fails if it already exists; that is the AlreadyInitialized guard.
    Stops at the first failure.
    """
    root = Path(root)
    if not separate and not bare:
        try:
            os.mkdir(root, permission)
        except FileExistsError as e:
            raise AlreadyInitializedError(
                f"{root.parent} already contains a jit repository. "
                f"change the current directory or remove {root.name} from it."
            ) from e
        except OSError as e:
            raise JitIOError(f"cannot create {root}: {e.strerror or e}") from e
        _record(undo, f"remove directory {root}", _remove_dir(root))

    for entry in REPOSITORY_LAYOUT:
        path = root / entry.name
        if entry.kind is EntryKind.FILE:
            _create_file(path, undo)
        else:
            _create_dir(path, permission, undo)
    return root


def _create_file(path: Path, undo: Optional[UndoLog]) -> None:
    """Create an empty file; an existing file is kept as is (never truncated)."""
    if path.is_symlink():
        raise JitIOError(f"cannot create file {path}: a symbolic link is in the way")
    existed = path.exists()
    if path.is_dir():
        raise JitIOError(f"cannot create file {path}: a directory is in the way")
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY, DEFAULT_FILE_PERM)
    except OSError as e:
        raise JitIOError(f"cannot create file {path}: {e.strerror or e}") from e
    try:
        os.close(fd)
    except OSError as e:
        logger.warning("Error closing %s: %s", path, e)
    if not existed:
        _record(undo, f"remove file {path}", _remove_file(path))


def _create_dir(path: Path, permission: int, undo: Optional[UndoLog]) -> None:
    if path.exists() and not path.is_dir():
        raise JitIOError(f"cannot create directory {path}: a file is in the way")
    existed = path.is_dir()
    try:
        os.makedirs(path, permission, exist_ok=True)
    except OSError as e:
        raise JitIOError(f"cannot create directory {path}: {e.strerror or e}") from e
    if not existed:
        _record(undo, f"remove directory {path}", _remove_dir(path))


def _is_privilege_error(e: OSError) -> bool:
    if isinstance(e, PermissionError):
        return True
    if getattr(e, "winerror", None) == _WINERROR_PRIVILEGE_NOT_HELD:
        return True
    return e.errno in (errno.EPERM, errno.EACCES)


def link_storage_dir(
    storage_dir: Union[str, Path],
    link_path: Union[str, Path],
    undo: Optional[UndoLog] = None,
) -> Path:
    """Create symlink link_path -> storage_dir (absolute) and return link_path."""
    link_path = Path(link_path)
    target = os.path.abspath(storage_dir)
    if os.path.lexists(link_path):
        raise AlreadyInitializedError(
            f"{link_path} already exists. remove it before using a separate jit directory."
        )
    try:
        os.symlink(target, link_path, target_is_directory=True)
    except FileExistsError as e:
        raise AlreadyInitializedError(f"{link_path} already exists") from e
    except NotImplementedError as e:
        raise InsufficientPrivilegeError(
            "this platform cannot create symbolic links; the separate directory option is unavailable"
        ) from e
    except OSError as e:
        if _is_privilege_error(e):
            raise InsufficientPrivilegeError(
                f"not allowed to create a symbolic link at {link_path}. "
                "start the terminal in administrative mode (or enable developer mode) "
                "to use the separate directory option"
            ) from e
        raise JitIOError(f"cannot create link {link_path}: {e.strerror or e}") from e
    _record(undo, f"remove link {link_path}", _remove_file(link_path))
    return link_path
