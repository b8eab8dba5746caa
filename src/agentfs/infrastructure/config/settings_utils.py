"""Environment parsing helpers for AgentFS settings.

All helpers are forgiving: a malformed value falls back to the default
instead of failing startup.
"""

from __future__ import annotations

import os
import re
from typing import Iterable, Optional, Sequence


_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "enabled"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})

_SIZE_RE = re.compile(r"^(\d+)\s*([kmg]i?b?|b)?$")
_SIZE_FACTORS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "ki": 1024,
    "kib": 1024,
    "m": 1000**2,
    "mb": 1000**2,
    "mi": 1024**2,
    "mib": 1024**2,
    "g": 1000**3,
    "gb": 1000**3,
    "gi": 1024**3,
    "gib": 1024**3,
}


def parse_bool(value: object, *, default: bool = False) -> bool:
    """Parse a loose boolean value."""
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower() if value is not None else ""
    if token in _TRUE_VALUES:
        return True
    if token in _FALSE_VALUES:
        return False
    return default


def parse_byte_size(value: object) -> Optional[int]:
    """Parse ``"120000"``, ``"120_000"``, ``"120k"`` or ``"2MiB"`` into bytes.

    Decimal suffixes are powers of 1000, ``i`` suffixes powers of 1024.
    Returns None when the value is not a size.
    """
    token = str(value if value is not None else "").strip().lower().replace("_", "")
    match = _SIZE_RE.match(token)
    if match is None:
        return None
    number, unit = match.groups()
    return int(number) * _SIZE_FACTORS[unit or ""]


def _clamp(value: int, minimum: Optional[int], maximum: Optional[int]) -> int:
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def env_str(name: str, default: str = "") -> str:
    value = os.environ.get(name)
    return default if value is None else value.strip()


def env_bool(name: str, default: bool = False) -> bool:
    return parse_bool(os.environ.get(name), default=default)


def env_int(
    name: str,
    default: int,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """Integer env var clamped to ``[minimum, maximum]``."""
    raw = env_str(name).replace("_", "")
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return _clamp(parsed, minimum, maximum)


def env_bytes(
    name: str,
    default: int,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """Byte-size env var (see :func:`parse_byte_size`), clamped."""
    parsed = parse_byte_size(os.environ.get(name))
    if parsed is None:
        return default
    return _clamp(parsed, minimum, maximum)


def env_choice(name: str, default: str, choices: Iterable[str]) -> str:
    """Case-insensitive enum-like env var; unknown values fall back to `default`."""
    value = env_str(name, default).lower()
    return value if value in {str(item).lower() for item in choices} else default


def env_list(name: str, default: Sequence[str] | None = None) -> list[str]:
    """Comma-separated env var; blank items are dropped."""
    items = [item.strip() for item in env_str(name).split(",")]
    return [item for item in items if item] or list(default or [])
