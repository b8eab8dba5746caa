"""Path guardrails for the sandbox root."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from agentfs.domain.errors import InvalidArgumentError, PathEscapeError

logger = structlog.get_logger()


def normalize_path(path: str | Path) -> Path:
    """Expand ``~``/env vars and canonicalize to an absolute real path."""
    raw = str(path or "").strip()
    if not raw:
        raise InvalidArgumentError("path is required")
    expanded = os.path.expandvars(os.path.expanduser(raw))
    return Path(expanded).resolve(strict=False)


def is_within_root(root: str | Path, candidate: str | Path) -> bool:
    """Component-wise containment check (inclusive of ``root`` itself)."""
    root_str = os.path.normpath(str(root))
    candidate_str = os.path.normpath(str(candidate))
    try:
        common = os.path.commonpath([root_str, candidate_str])
    except ValueError:
        return False
    return common == root_str


def ensure_within_root(root: str | Path, path: str | Path) -> Path:
    """Ensure `path` is under `root` (inclusive)."""
    if not is_within_root(root, path):
        raise PathEscapeError("path escapes root", path=str(path))
    return Path(os.path.normpath(str(path)))


def resolve_within_root(root: str | Path, candidate: str) -> Path:
    """Join `candidate` onto `root` lexically and reject escapes.

    No filesystem access happens here: ``.``/``..`` and redundant separators
    are collapsed with ``os.path.normpath``. An absolute `candidate` replaces
    `root` in the join and is therefore only accepted when it already lies
    under `root`.
    """
    raw = "" if candidate is None else str(candidate)
    if "\x00" in raw:
        raise InvalidArgumentError("path contains NUL byte", path=raw.replace("\x00", "\\0"))
    base = os.path.normpath(str(root))
    joined = os.path.normpath(os.path.join(base, raw))
    if not is_within_root(base, joined):
        logger.warning("path_escape_blocked", root=base, candidate=raw)
        raise PathEscapeError("path escapes root", path=raw)
    return Path(joined)


def safe_join(root: str | Path, *parts: str) -> Path:
    return resolve_within_root(root, os.path.join(*parts) if parts else "")


class PathGuard:
    """Resolves caller paths against one canonical root.

    Usage:
        guard = PathGuard("/srv/project")
        guard.resolve("src/main.py")   # /srv/project/src/main.py
        guard.resolve("../etc/passwd")  # raises PathEscapeError
    """

    def __init__(self, root: str | Path):
        self._root = normalize_path(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, candidate: str) -> Path:
        """Lexically resolve `candidate` under the root."""
        return resolve_within_root(self._root, candidate)

    def resolve_real(self, candidate: str) -> Path:
        """Resolve `candidate` and also refuse symlinks pointing outside the root."""
        resolved = self.resolve(candidate)
        real = resolved.resolve(strict=False)
        if not is_within_root(self._root, real):
            logger.warning(
                "path_escape_blocked",
                root=str(self._root),
                candidate=candidate,
                real=str(real),
            )
            raise PathEscapeError("path escapes root via symlink", path=str(candidate))
        return resolved

    def relative(self, path: str | Path) -> str:
        """Root-relative POSIX form of an absolute path under the root."""
        rel = os.path.relpath(str(path), str(self._root))
        return "." if rel == "." else Path(rel).as_posix()

    def is_safe_path(self, candidate: str) -> bool:
        try:
            self.resolve_real(candidate)
            return True
        except (PathEscapeError, InvalidArgumentError):
            return False

    def __repr__(self) -> str:
        return f"PathGuard(root={str(self._root)!r})"
