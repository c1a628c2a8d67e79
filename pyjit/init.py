"""Repository initialization: resolve dirs, lock, link, scaffold, write config, set HEAD.

Stages run strictly in order. The first failure rolls back everything the
attempt created (newest first), releases the lock, and re-raises the error
with its ``stage`` set.
"""

from __future__ import annotations

import logging
import os
import time
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .constants import JIT_DIR_NAME
from .errors import InitTimeoutError, JitError, JitIOError
from .layout import layout_problems, plan_root
from .lock import RootLock
from .metadata import read_head, set_initial_branch, write_config
from .options import InitializationOptions
from .paths import resolve_root
from .scaffold import UndoLog, link_storage_dir, scaffold

logger = logging.getLogger(__name__)


class InitStage(Enum):
    PARSE_OPTIONS = "parse-options"
    RESOLVE_DIRS = "resolve-dirs"
    LOCK = "lock"
    LINK_IF_SEPARATE = "link-separate-dir"
    SCAFFOLD = "scaffold"
    WRITE_CONFIG = "write-config"
    SET_BRANCH = "set-branch"
    VERIFY = "verify"


class _Deadline:
    def __init__(self, timeout: Optional[float]) -> None:
        self.timeout = timeout
        self._end = None if timeout is None else time.monotonic() + timeout

    def check(self, stage: InitStage) -> None:
        if self._end is not None and time.monotonic() > self._end:
            raise InitTimeoutError(f"initialization exceeded {self.timeout}s before {stage.value}")


def _verify(root: Path, branch: str) -> None:
    problems = layout_problems(root)
    if problems:
        raise JitIOError("repository layout incomplete: " + "; ".join(problems))
    head = read_head(root)
    if head is None or not head.is_file() or head.name != branch:
        raise JitIOError(f"head does not point at branch file for {branch!r} (got {head})")


def initialize_repository(
    options: Union[InitializationOptions, Mapping[str, Any]],
    working_dir: Union[str, Path] = "",
    timeout: Optional[float] = None,
) -> bool:
    """Create a jit repository. Return True on success; raise JitError on failure.

    options may be an InitializationOptions or the raw CLI map (see
    InitializationOptions.from_mapping). An empty working_dir means the current
    directory.
    """
    stage = InitStage.PARSE_OPTIONS
    undo = UndoLog()
    lock: Optional[RootLock] = None
    deadline = _Deadline(timeout)
    try:
        if not isinstance(options, InitializationOptions):
            options = InitializationOptions.from_mapping(options)

        stage = InitStage.RESOLVE_DIRS
        deadline.check(stage)
        sep_dir: Optional[Path] = None
        if options.separate_storage_dir:
            sep_dir = resolve_root(options.separate_storage_dir)
        work_dir = resolve_root(working_dir)
        root = plan_root(work_dir, sep_dir, options.bare)
        logger.debug("working dir %s, repository root %s", work_dir, root)

        stage = InitStage.LOCK
        deadline.check(stage)
        lock = RootLock(sep_dir if sep_dir is not None else work_dir)
        lock.acquire()

        if sep_dir is not None:
            stage = InitStage.LINK_IF_SEPARATE
            deadline.check(stage)
            link_storage_dir(sep_dir, work_dir / JIT_DIR_NAME, undo)

        stage = InitStage.SCAFFOLD
        deadline.check(stage)
        scaffold(root, sep_dir is not None, options.bare, options.directory_permission, undo)

        stage = InitStage.WRITE_CONFIG
        deadline.check(stage)
        write_config(options.config_entries(), root, undo)

        stage = InitStage.SET_BRANCH
        deadline.check(stage)
        set_initial_branch(root, options.initial_branch, undo)

        stage = InitStage.VERIFY
        _verify(root, options.initial_branch)
    except JitError as e:
        _abort(undo, stage, e)
        raise
    except OSError as e:
        err = JitIOError(f"{e.strerror or e}", stage=stage.value)
        _abort(undo, stage, err)
        raise err from e
    except BaseException:
        logger.debug("initialization interrupted at %s; rolling back %d step(s)", stage.value, len(undo))
        undo.rollback()
        raise
    finally:
        if lock is not None:
            lock.release()

    undo.discard()
    if not options.quiet:
        print(f"Initialized empty Jit repository in {os.path.abspath(root)}")
    return True


def _abort(undo: UndoLog, stage: InitStage, err: JitError) -> None:
    if err.stage is None:
        err.stage = stage.value
    logger.debug("initialization failed at %s: %s; rolling back %d step(s)", stage.value, err, len(undo))
    undo.rollback()
