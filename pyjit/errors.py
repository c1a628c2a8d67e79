"""Custom exceptions for pyjit."""

from __future__ import annotations

from typing import Optional


class JitError(Exception):
    """Base exception for pyjit. ``stage`` names the init stage that failed, if known."""

    def __init__(self, message: str = "", stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage


class PathNotFoundError(JitError):
    """Raised when a referenced directory does not exist."""

    pass


class NotADirectoryPathError(JitError):
    """Raised when a referenced path exists but is not a directory."""

    pass


class WritePermissionError(JitError):
    """Raised when the write probe fails in a target directory."""

    pass


class AlreadyInitializedError(JitError):
    """Raised when a .jit directory (or link) already exists where a fresh one was to be created."""

    pass


class InsufficientPrivilegeError(JitError):
    """Raised when the process may not create the symlink for a separate storage dir."""

    pass


class InvalidArgumentError(JitError):
    """Raised when an option value (permission, branch name, config value) is malformed."""

    pass


class JitIOError(JitError):
    """Raised for any other filesystem failure (create/open/write)."""

    pass


class RepositoryLockedError(JitError):
    """Raised when another initialization holds the root lock."""

    pass


class InitTimeoutError(JitError):
    """Raised when initialization runs past its deadline."""

    pass
