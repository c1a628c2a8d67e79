"""Repository metadata: append-only KEY=VALUE config and the HEAD branch pointer.

config holds one ``KEY=VALUE`` line per entry. Re-initializing appends again,
so a key may appear more than once; readers take the last occurrence.

head holds the absolute path of the checked-out branch file, with no
trailing newline.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Union

from .constants import BRANCHES, CONFIG, DEFAULT_FILE_PERM, HEAD
from .errors import InvalidArgumentError, JitIOError
from .options import validate_branch_name
from .scaffold import UndoLog

logger = logging.getLogger(__name__)


def normalize_key(key: str) -> str:
    """Uppercase, hyphenated config key: 'object_format' -> 'OBJECT-FORMAT'."""
    norm = "-".join(key.strip().replace("_", " ").replace("-", " ").split()).upper()
    if not norm or "=" in norm or "\n" in norm or "\r" in norm:
        raise InvalidArgumentError(f"invalid config key: {key!r}")
    return norm


def _truncate_to(path: Path, size: int):
    def undo() -> None:
        with path.open("r+b") as f:
            f.truncate(size)
    return undo


def write_config(
    entries: Mapping[str, str],
    root: Union[str, Path],
    undo: Optional[UndoLog] = None,
) -> None:
    """Append KEY=VALUE lines to root/config, creating it if needed.

    All entries are validated before anything is written. A single line that
    fails to write is logged and skipped; only failing to open the file raises.
    """
    lines = []
    for key, value in entries.items():
        value = "" if value is None else str(value)
        if "\n" in value or "\r" in value:
            raise InvalidArgumentError(f"config value for {key!r} must not contain a newline")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidArgumentError(f"config value for {key!r} is not valid UTF-8: {value!r}") from None
        lines.append(f"{normalize_key(key)}={value}\n")

    path = Path(root) / CONFIG
    try:
        prior_size = path.stat().st_size
    except FileNotFoundError:
        prior_size = None
    except OSError as e:
        raise JitIOError(f"cannot open {path}: {e.strerror or e}") from e
    try:
        f = path.open("a", encoding="utf-8")
    except OSError as e:
        raise JitIOError(f"cannot open {path}: {e.strerror or e}") from e
    if undo is not None:
        if prior_size is None:
            undo.push(f"remove file {path}", path.unlink)
        else:
            undo.push(f"truncate {path} to {prior_size} bytes", _truncate_to(path, prior_size))
    with f:
        for line in lines:
            try:
                f.write(line)
                f.flush()
            except OSError as e:
                logger.warning("could not write config entry %r to %s: %s", line.rstrip("\n"), path, e)


def read_config(root: Union[str, Path]) -> list[tuple[str, str]]:
    """Return [(key, value), ...] in file order; duplicates kept. Missing file -> []."""
    path = Path(root) / CONFIG
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as e:
        raise JitIOError(f"cannot read {path}: {e.strerror or e}") from e
    result: list[tuple[str, str]] = []
    for line in raw.splitlines():
        if not line.strip():
            continue
        key, sep, value = line.partition("=")
        if not sep:
            logger.warning("ignoring malformed config line in %s: %r", path, line)
            continue
        result.append((key, value))
    return result


def config_value(root: Union[str, Path], key: str) -> Optional[str]:
    """Last value recorded for key, or None."""
    wanted = normalize_key(key)
    found = None
    for k, v in read_config(root):
        if k == wanted:
            found = v
    return found


def set_initial_branch(
    root: Union[str, Path],
    branch: str,
    undo: Optional[UndoLog] = None,
) -> Path:
    """Create branches/<branch> (kept if present) and point head at its absolute path.

    Returns the branch file path written to head.
    """
    validate_branch_name(branch)
    root = Path(root)
    branch_path = Path(os.path.abspath(root / BRANCHES / branch))
    existed = branch_path.exists()
    try:
        with open(branch_path, "a", encoding="utf-8"):
            pass
    except OSError as e:
        raise JitIOError(f"cannot create branch file {branch_path}: {e.strerror or e}") from e
    if undo is not None and not existed:
        undo.push(f"remove file {branch_path}", branch_path.unlink)

    head_path = root / HEAD
    try:
        prior = head_path.read_bytes()
    except FileNotFoundError:
        prior = None
    except OSError as e:
        raise JitIOError(f"cannot read {head_path}: {e.strerror or e}") from e
    try:
        fd = os.open(head_path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, DEFAULT_FILE_PERM)
    except OSError as e:
        raise JitIOError(f"cannot open {head_path}: {e.strerror or e}") from e
    if undo is not None:
        if prior is None:
            undo.push(f"remove file {head_path}", head_path.unlink)
        else:
            undo.push(f"restore {head_path}", lambda: head_path.write_bytes(prior))
    try:
        os.write(fd, os.fsencode(branch_path))
    except OSError as e:
        raise JitIOError(f"cannot write {head_path}: {e.strerror or e}") from e
    finally:
        os.close(fd)
    return branch_path


def read_head(root: Union[str, Path]) -> Optional[Path]:
    """Return the branch file path stored in head, or None if head is missing or empty."""
    path = Path(root) / HEAD
    try:
        raw = os.fsdecode(path.read_bytes())
    except FileNotFoundError:
        return None
    except OSError as e:
        raise JitIOError(f"cannot read {path}: {e.strerror or e}") from e
    raw = raw.strip()
    return Path(raw) if raw else None
