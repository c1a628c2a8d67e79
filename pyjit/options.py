"""Initialization options: validated, immutable bundle built from the raw CLI map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .constants import (
    CONFIG_INITIAL_BRANCH,
    CONFIG_OBJECT_FORMAT,
    CONFIG_TEMPLATE,
    DEFAULT_BRANCH,
    DEFAULT_DIR_PERM,
    DEFAULT_OBJECT_FORMAT,
    MAX_PERM,
)
from .errors import InvalidArgumentError

# Keys of the flat option map produced by the CLI
OPT_QUIET = "quiet"
OPT_BARE = "bare"
OPT_SEPARATE_DIR = "separate-jit-dir"
OPT_TEMPLATE = "template"
OPT_OBJECT_FORMAT = "object-format"
OPT_INITIAL_BRANCH = "initial-branch"
OPT_PERM = "perm"

# Characters disallowed in branch names (subset of git refname rules)
_BRANCH_FORBIDDEN = set(" ~^:?*[]\\/")


def parse_permission(text: str) -> int:
    """Parse an octal mode such as '0755'. Raise InvalidArgumentError if malformed."""
    if not isinstance(text, str) or not text.strip():
        raise InvalidArgumentError(f"invalid permission: {text!r} (expected octal, e.g. 0755)")
    s = text.strip()
    if s.lower().startswith("0o"):
        s = s[2:]
    try:
        mode = int(s, 8)
    except ValueError:
        raise InvalidArgumentError(f"invalid permission: {text!r} (expected octal, e.g. 0755)") from None
    if mode < 0 or mode > MAX_PERM:
        raise InvalidArgumentError(f"invalid permission: {text!r} (out of range)")
    return mode


def validate_branch_name(name: str) -> None:
    """Raise InvalidArgumentError unless name is usable as a file under branches/."""
    if not name or name in (".", "..") or name.startswith("."):
        raise InvalidArgumentError(f"invalid branch name: {name!r}")
    if name.endswith(".lock"):
        raise InvalidArgumentError(f"invalid branch name: {name!r}")
    for c in name:
        if c in _BRANCH_FORBIDDEN or ord(c) < 32 or ord(c) == 127:
            raise InvalidArgumentError(f"invalid branch name: {name!r}")
    _check_encodable("branch name", name)


def _check_encodable(option: str, value: str) -> None:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidArgumentError(f"{option} is not valid UTF-8: {value!r}") from None


def _check_single_line(option: str, value: str) -> None:
    if "\n" in value or "\r" in value:
        raise InvalidArgumentError(f"{option} must not contain a newline")
    _check_encodable(option, value)


def _get(raw: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise InvalidArgumentError(
            f"option {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class InitializationOptions:
    quiet: bool = False
    bare: bool = False
    separate_storage_dir: str = ""
    template: str = ""
    object_format: str = DEFAULT_OBJECT_FORMAT
    initial_branch: str = DEFAULT_BRANCH
    directory_permission: int = 0o755

    def __post_init__(self) -> None:
        validate_branch_name(self.initial_branch)
        _check_single_line(OPT_TEMPLATE, self.template)
        _check_single_line(OPT_OBJECT_FORMAT, self.object_format)
        if not self.object_format:
            raise InvalidArgumentError("object format must not be empty")
        if not 0 <= self.directory_permission <= MAX_PERM:
            raise InvalidArgumentError(f"invalid permission: {oct(self.directory_permission)}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "InitializationOptions":
        """Build options from the flat map the CLI produces; bad types or values raise InvalidArgumentError."""
        return cls(
            quiet=_get(raw, OPT_QUIET, bool, False),
            bare=_get(raw, OPT_BARE, bool, False),
            separate_storage_dir=_get(raw, OPT_SEPARATE_DIR, str, ""),
            template=_get(raw, OPT_TEMPLATE, str, ""),
            object_format=_get(raw, OPT_OBJECT_FORMAT, str, DEFAULT_OBJECT_FORMAT),
            initial_branch=_get(raw, OPT_INITIAL_BRANCH, str, DEFAULT_BRANCH),
            directory_permission=parse_permission(_get(raw, OPT_PERM, str, DEFAULT_DIR_PERM)),
        )

    def config_entries(self) -> dict[str, str]:
        """Entries recorded in the repository config, in write order."""
        return {
            CONFIG_TEMPLATE: self.template,
            CONFIG_OBJECT_FORMAT: self.object_format,
            CONFIG_INITIAL_BRANCH: self.initial_branch,
        }
