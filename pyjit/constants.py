"""Constants for pyjit: metadata dir name, layout entry names, default modes."""

from __future__ import annotations

JIT_VERSION = "1.0.0"

# Repository-metadata directory created inside the working directory
JIT_DIR_NAME = ".jit"

# Layout entries under the repository root
MAIN = "main"
HEAD = "head"
STAGE = "stage"
CONFIG = "config"
LOGS = "logs"
INFO = "info"
BRANCHES = "branches"
SNAPSHOTS = "snapshots"
OBJECTS = "objects"

# Modes
DEFAULT_FILE_PERM = 0o644
DEFAULT_DIR_PERM = "0755"
MAX_PERM = 0o7777

# Option defaults (same values the CLI advertises)
DEFAULT_BRANCH = "main"
DEFAULT_OBJECT_FORMAT = "sha1"

# Config keys
CONFIG_TEMPLATE = "TEMPLATE"
CONFIG_OBJECT_FORMAT = "OBJECT-FORMAT"
CONFIG_INITIAL_BRANCH = "INITIAL-BRANCH"

# Exclusive lock held for the duration of one initialization
LOCK_FILENAME = ".jit.lock"
