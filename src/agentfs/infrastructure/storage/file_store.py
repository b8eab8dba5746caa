"""Sandboxed file store.

Exposes list/read/write/delete over a single root directory. Every operation
resolves its path through :class:`PathGuard` before touching storage; writes
given a unified diff go through :class:`PatchEngine` and are only persisted
when the patch applies cleanly.

Examples:
    >>> store = FileStore(StoreConfig(root="/srv/project"))
    >>> store.write("src/main.py", contents="print('hi')\\n")
    >>> store.write("src/main.py", patch=diff_text)
    >>> store.read("src/main.py", max_bytes=1024)
    >>> store.list("src")
    >>> store.delete("build")
"""

from __future__ import annotations

import os
import shutil
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import structlog

from agentfs.domain.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
)
from agentfs.infrastructure.storage.io_text import (
    decode_text,
    read_bytes_head,
    sha256_bytes,
    write_text_atomic,
)
from agentfs.infrastructure.storage.path_guard import PathGuard
from agentfs.infrastructure.storage.unified_diff import PatchEngine, PatchMode

logger = structlog.get_logger()

DEFAULT_MAX_READ_BYTES = 120_000


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "dir"


@dataclass(frozen=True)
class DirEntry:
    name: str
    kind: EntryKind

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "kind": self.kind.value}


@dataclass(frozen=True)
class WriteResult:
    path: str
    wrote_bytes: int
    sha256: str
    patched: bool = False
    ok: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "path": self.path,
            "wroteBytes": self.wrote_bytes,
            "sha256": self.sha256,
            "patched": self.patched,
        }


@dataclass(frozen=True)
class DeleteResult:
    path: str
    deleted: bool
    ok: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "path": self.path, "deleted": self.deleted}


@dataclass
class StoreConfig:
    """Per-store configuration.

    Attributes:
        root: Sandbox root; canonicalized when the store is built
        max_read_bytes: Default truncation limit for reads
        patch_mode: Tolerance of the patch engine
        create_root: Create the root directory if it is missing
    """

    root: str | Path
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES
    patch_mode: PatchMode | str = PatchMode.LENIENT
    create_root: bool = True

    def __post_init__(self) -> None:
        self.patch_mode = PatchMode.parse(self.patch_mode)
        if self.max_read_bytes is None or int(self.max_read_bytes) < 0:
            raise InvalidArgumentError("max_read_bytes must be >= 0")
        self.max_read_bytes = int(self.max_read_bytes)


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class FileStore:
    """File operations confined to one root.

    The store keeps no copy of file contents between calls; every operation
    re-reads storage. Writes to the same path from threads sharing this
    instance are serialized.
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self.guard = PathGuard(config.root)
        self.engine = PatchEngine(config.patch_mode)
        if config.create_root:
            self.guard.root.mkdir(parents=True, exist_ok=True)
        elif not self.guard.root.is_dir():
            raise NotFoundError("root directory does not exist", path=str(self.guard.root))
        self._locks: Dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()

    @property
    def root(self) -> Path:
        return self.guard.root

    @contextmanager
    def _path_lock(self, full_path: Path) -> Iterator[None]:
        """Serialize writers of one path; the entry is dropped once unused."""
        key = str(full_path)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _LockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def list(self, dir: str = ".") -> List[DirEntry]:
        """List direct children of `dir`, sorted by name."""
        full_path = self.guard.resolve_real(dir)
        if not full_path.exists():
            raise NotFoundError("directory not found", path=dir)
        if not full_path.is_dir():
            raise InvalidArgumentError("not a directory", path=dir)

        entries = []
        with os.scandir(full_path) as iterator:
            for item in iterator:
                kind = EntryKind.DIRECTORY if item.is_dir() else EntryKind.FILE
                entries.append(DirEntry(name=item.name, kind=kind))
        entries.sort(key=lambda entry: entry.name)
        return entries

    def read(self, file: str, max_bytes: Optional[int] = None) -> bytes:
        """Read up to `max_bytes` (default from config) from the start of `file`."""
        limit = self.config.max_read_bytes if max_bytes is None else max_bytes
        if limit < 0:
            raise InvalidArgumentError("max_bytes must be >= 0", path=file)
        full_path = self.guard.resolve_real(file)
        if not full_path.is_file():
            raise NotFoundError("file not found", path=file)
        data = read_bytes_head(str(full_path), limit)
        logger.debug("file_read", path=file, bytes=len(data), limit=limit)
        return data

    def read_text(self, file: str, max_bytes: Optional[int] = None) -> str:
        return decode_text(self.read(file, max_bytes))

    def exists(self, path: str) -> bool:
        if not self.guard.is_safe_path(path):
            return False
        return self.guard.resolve(path).exists()

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def write(
        self,
        file: str,
        contents: Optional[str] = None,
        patch: Optional[str] = None,
        *,
        expected_sha256: Optional[str] = None,
    ) -> WriteResult:
        """Overwrite `file` with `contents`, or apply the unified diff `patch`.

        Exactly one of `contents`/`patch` must be given. A missing file counts
        as empty for patching and for `expected_sha256`. Parent directories are
        created as needed.

        Raises:
            InvalidArgumentError: neither or both payloads given, target is a
                directory or the root, or the patch is malformed.
            ContextMismatchError / RemovalMismatchError: patch does not match.
            ConflictError: on-disk content does not hash to `expected_sha256`.
        """
        if contents is None and patch is None:
            raise InvalidArgumentError("provide `contents` or `patch`", path=file)
        if contents is not None and patch is not None:
            raise InvalidArgumentError("provide only one of `contents` or `patch`", path=file)
        payload = contents if patch is None else patch
        if not isinstance(payload, str):
            raise InvalidArgumentError("`contents` and `patch` must be text", path=file)

        # an in-root symlink is written through to its target, never replaced
        full_path = self.guard.resolve_real(file).resolve(strict=False)
        if full_path == self.root or full_path.is_dir():
            raise InvalidArgumentError("path is a directory", path=file)

        with self._path_lock(full_path):
            if patch is not None or expected_sha256:
                original_bytes = self._read_original(full_path)
                if expected_sha256:
                    current = sha256_bytes(original_bytes)
                    if current != expected_sha256.strip().lower():
                        raise ConflictError(
                            "file changed since it was read",
                            path=file,
                            details={"expected_sha256": expected_sha256, "actual_sha256": current},
                        )

            if patch is not None:
                new_contents = self.engine.apply(decode_text(original_bytes), patch)
            else:
                new_contents = contents

            wrote = write_text_atomic(str(full_path), new_contents)

        result = WriteResult(
            path=file,
            wrote_bytes=wrote,
            sha256=sha256_bytes(new_contents.encode("utf-8")),
            patched=patch is not None,
        )
        logger.info("file_written", path=file, bytes=wrote, patched=result.patched)
        return result

    def _read_original(self, full_path: Path) -> bytes:
        try:
            return read_bytes_head(str(full_path))
        except FileNotFoundError:
            return b""

    # -------------------------------------------------------------------------
    # Delete Operations
    # -------------------------------------------------------------------------

    def delete(self, path: str) -> DeleteResult:
        """Remove a file or a directory tree. Missing targets are not an error."""
        full_path = self.guard.resolve(path)
        if full_path == self.root:
            raise InvalidArgumentError("cannot delete the root directory", path=path)

        if full_path.is_symlink():
            # the link itself is removed, never its target
            self.guard.resolve_real(os.path.dirname(path) or ".")
            full_path.unlink()
            deleted = True
        else:
            self.guard.resolve_real(path)
            if full_path.is_dir():
                shutil.rmtree(full_path)
                deleted = True
            elif full_path.exists():
                full_path.unlink()
                deleted = True
            else:
                deleted = False

        logger.info("path_deleted", path=path, deleted=deleted)
        return DeleteResult(path=path, deleted=deleted)

    def __repr__(self) -> str:
        return f"FileStore(root={str(self.root)!r}, patch_mode={self.engine.mode.value!r})"


def create_file_store(
    root: str | Path,
    *,
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES,
    patch_mode: PatchMode | str = PatchMode.LENIENT,
) -> FileStore:
    """Create a FileStore for `root`."""
    return FileStore(StoreConfig(root=root, max_read_bytes=max_read_bytes, patch_mode=patch_mode))


__all__ = [
    "DEFAULT_MAX_READ_BYTES",
    "DeleteResult",
    "DirEntry",
    "EntryKind",
    "FileStore",
    "StoreConfig",
    "WriteResult",
    "create_file_store",
]
