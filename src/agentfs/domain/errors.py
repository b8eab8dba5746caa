"""Domain errors.

Every failure the core reports belongs to this closed set. Each error carries
a stable ``code`` tag so tool and HTTP layers can surface it without parsing
messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AgentFSError(Exception):
    """Base error."""

    code = "AgentFSError"

    def __init__(
        self,
        message: str,
        *,
        path: str = "",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.path = path
        self.details: Dict[str, Any] = dict(details or {})
        super().__init__(f"{message}: {path}" if path else message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "error": str(self)}
        if self.path:
            payload["path"] = self.path
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class PathEscapeError(AgentFSError):
    """Resolved path lies outside the sandbox root."""

    code = "PathEscape"


class NotFoundError(AgentFSError):
    """File or directory does not exist."""

    code = "NotFound"


class InvalidArgumentError(AgentFSError):
    """Caller supplied an unusable argument or a malformed patch."""

    code = "InvalidArgument"


class ConflictError(AgentFSError):
    """On-disk content moved on since the caller last read it."""

    code = "Conflict"


class PatchApplyError(AgentFSError):
    """Patch does not match the current content."""

    code = "PatchApply"


class ContextMismatchError(PatchApplyError):
    """A context line differs from the original line under the cursor."""

    code = "ContextMismatch"


class RemovalMismatchError(PatchApplyError):
    """A removal line differs from the original line under the cursor."""

    code = "RemovalMismatch"
