"""Text file utilities for AgentFS."""

from __future__ import annotations

import hashlib
import os
import stat
import tempfile

from agentfs.infrastructure.config.settings_utils import env_str, parse_bool


def _fsync_enabled() -> bool:
    """Check if fsync is enabled for atomic writes."""
    value = env_str("AGENTFS_IO_FSYNC", "strict").lower()
    if value in ("relaxed", "skip", "disabled"):
        return False
    return parse_bool(value, default=True)


def ensure_parent_dir(path: str) -> None:
    """Ensure parent directory exists."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# read once; os.umask can only be queried by setting it
_UMASK = _current_umask()


def _target_mode(path: str) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK


def write_bytes_atomic(path: str, data: bytes) -> None:
    """Write a file atomically using a unique temp file and replace.

    The temp file lives next to `path` so ``os.replace`` stays on one
    filesystem; its random name never collides with files in the directory.
    The target keeps its permission bits, new files get the umask default.
    """
    ensure_parent_dir(path)
    fd, tmp_path = tempfile.mkstemp(
        dir=os.path.dirname(path) or ".",
        prefix=f".{os.path.basename(path)}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            if _fsync_enabled():
                os.fsync(handle.fileno())
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def write_text_atomic(path: str, text: str) -> int:
    """Write UTF-8 text atomically. Returns the number of bytes written."""
    data = (text or "").encode("utf-8")
    write_bytes_atomic(path, data)
    return len(data)


def read_bytes_head(path: str, max_bytes: int | None = None) -> bytes:
    """Read at most `max_bytes` from the start of a file (all when None)."""
    with open(path, "rb") as handle:
        if max_bytes is None:
            return handle.read()
        return handle.read(max(0, max_bytes))


def decode_text(data: bytes) -> str:
    """Decode UTF-8, replacing undecodable bytes (e.g. a cut multi-byte char)."""
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data or b"").hexdigest()


def sha256_text(text: str) -> str:
    return sha256_bytes((text or "").encode("utf-8"))
