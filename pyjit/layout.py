"""Repository layout: the fixed set of entries under a root, and root planning."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from .constants import (
    BRANCHES,
    CONFIG,
    HEAD,
    INFO,
    JIT_DIR_NAME,
    LOGS,
    MAIN,
    OBJECTS,
    SNAPSHOTS,
    STAGE,
)


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class LayoutEntry:
    """One required path under the repository root."""
    name: str
    kind: EntryKind


REPOSITORY_LAYOUT: tuple[LayoutEntry, ...] = (
    LayoutEntry(MAIN, EntryKind.FILE),
    LayoutEntry(HEAD, EntryKind.FILE),
    LayoutEntry(STAGE, EntryKind.FILE),
    LayoutEntry(CONFIG, EntryKind.FILE),
    LayoutEntry(LOGS, EntryKind.DIRECTORY),
    LayoutEntry(INFO, EntryKind.DIRECTORY),
    LayoutEntry(BRANCHES, EntryKind.DIRECTORY),
    LayoutEntry(SNAPSHOTS, EntryKind.DIRECTORY),
    LayoutEntry(OBJECTS, EntryKind.DIRECTORY),
)


def plan_root(
    working_dir: Union[str, Path],
    separate_dir: Union[str, Path, None],
    bare: bool,
) -> Path:
    """Return the directory that holds the layout. Separate dir wins over bare."""
    if separate_dir and str(separate_dir):
        return Path(separate_dir)
    if bare:
        return Path(working_dir)
    return Path(working_dir) / JIT_DIR_NAME


def layout_problems(root: Union[str, Path]) -> list[str]:
    """Return one message per layout entry that is missing or of the wrong kind."""
    root = Path(root)
    problems: list[str] = []
    for entry in REPOSITORY_LAYOUT:
        p = root / entry.name
        if not p.exists():
            problems.append(f"{entry.name} does not exist in {root}")
        elif entry.kind is EntryKind.FILE and not p.is_file():
            problems.append(f"{entry.name} in {root} is not a file")
        elif entry.kind is EntryKind.DIRECTORY and not p.is_dir():
            problems.append(f"{entry.name} in {root} is not a directory")
    return problems


def is_valid_layout(root: Union[str, Path]) -> bool:
    return not layout_problems(root)
