"""Storage infrastructure for AgentFS.

Provides the sandboxed file store, path guard, and unified diff engine.
"""

from .path_guard import (
    PathGuard,
    ensure_within_root,
    is_within_root,
    normalize_path,
    resolve_within_root,
    safe_join,
)
from .unified_diff import (
    Hunk,
    HunkLine,
    LineKind,
    PatchEngine,
    PatchMode,
    apply_hunks,
    apply_patch,
    parse_patch,
)
from .file_store import (
    DEFAULT_MAX_READ_BYTES,
    DeleteResult,
    DirEntry,
    EntryKind,
    FileStore,
    StoreConfig,
    WriteResult,
    create_file_store,
)

__all__ = [
    # Path guard
    "PathGuard",
    "ensure_within_root",
    "is_within_root",
    "normalize_path",
    "resolve_within_root",
    "safe_join",
    # Unified diff
    "Hunk",
    "HunkLine",
    "LineKind",
    "PatchEngine",
    "PatchMode",
    "apply_hunks",
    "apply_patch",
    "parse_patch",
    # File store (main API)
    "DEFAULT_MAX_READ_BYTES",
    "DeleteResult",
    "DirEntry",
    "EntryKind",
    "FileStore",
    "StoreConfig",
    "WriteResult",
    "create_file_store",
]
