"""PyJit: repository initialization and on-disk layout for the jit version-control tool."""

from .errors import JitError
from .init import InitStage, initialize_repository
from .options import InitializationOptions

__all__ = ["JitError", "InitStage", "InitializationOptions", "initialize_repository"]
