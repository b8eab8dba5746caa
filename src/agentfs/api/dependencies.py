"""FastAPI dependencies."""

from __future__ import annotations

import threading
from typing import Optional

from fastapi import Depends, HTTPException

from agentfs.config import settings
from agentfs.infrastructure.storage.file_store import FileStore
from agentfs.kernel.sandbox.script_runner import ScriptRunner
from agentfs.kernel.tools.tool_executor import ToolExecutor

_store: Optional[FileStore] = None
_store_lock = threading.Lock()


def get_file_store() -> FileStore:
    """Process-wide store built from settings (shared so per-path write locks apply)."""
    global _store
    with _store_lock:
        if _store is None:
            _store = FileStore(settings.store_config())
        return _store


def reset_file_store() -> None:
    global _store
    with _store_lock:
        _store = None


def require_write_access() -> None:
    """Refuse mutating file routes when writes are disabled."""
    if not settings.allow_write:
        raise HTTPException(status_code=403, detail="Write operations are disabled")


def get_tool_executor(store: FileStore = Depends(get_file_store)) -> ToolExecutor:
    """Dependency for ToolExecutor."""
    return ToolExecutor(
        store,
        allow_write=settings.allow_write,
        allow_exec=settings.allow_exec,
        runner=ScriptRunner(store, timeout_seconds=settings.script_timeout_seconds),
    )
