"""Exclusive lock file held while a repository root is being initialized."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .constants import LOCK_FILENAME
from .errors import JitIOError, RepositoryLockedError

logger = logging.getLogger(__name__)


class RootLock:
    """Create-exclusive lock file in base_dir. Use as a context manager."""

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.path = Path(base_dir) / LOCK_FILENAME
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            holder = _read_holder(self.path)
            who = f" (pid {holder})" if holder else ""
            raise RepositoryLockedError(
                f"another initialization is in progress{who}; remove {self.path} if it is stale"
            ) from e
        except OSError as e:
            raise JitIOError(f"cannot create lock {self.path}: {e.strerror or e}") from e
        try:
            os.write(fd, f"{os.getpid()}\n".encode("ascii"))
        except OSError as e:
            logger.warning("Error writing lock file %s: %s", self.path, e)
        finally:
            os.close(fd)
        self._held = True
        logger.debug("acquired %s", self.path)

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self.path.unlink()
            logger.debug("released %s", self.path)
        except OSError as e:
            logger.warning("Error removing lock file %s: %s", self.path, e)

    def __enter__(self) -> "RootLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


def _read_holder(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="ascii").strip() or None
    except (OSError, UnicodeDecodeError):
        return None
