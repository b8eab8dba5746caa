"""Domain types shared across layers."""

from agentfs.domain.errors import (
    AgentFSError,
    ConflictError,
    ContextMismatchError,
    InvalidArgumentError,
    NotFoundError,
    PatchApplyError,
    PathEscapeError,
    RemovalMismatchError,
)

__all__ = [
    "AgentFSError",
    "ConflictError",
    "ContextMismatchError",
    "InvalidArgumentError",
    "NotFoundError",
    "PatchApplyError",
    "PathEscapeError",
    "RemovalMismatchError",
]
