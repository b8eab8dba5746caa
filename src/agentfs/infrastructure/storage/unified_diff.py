"""Unified diff parser and applier.

Applies patches in the ``diff -u`` / ``git diff`` format to an in-memory text:

- ``' '`` context lines must match the original and are kept,
- ``'-'`` removal lines must match the original and are dropped,
- ``'+'`` addition lines are inserted.

File headers (``---``/``+++``, ``diff --git``, ``index``) before the first hunk
are skipped. ``old_start`` of every hunk is read against the original line
numbering; hunks are applied in document order and never revisit a line.

The result is joined with ``\\n`` regardless of the original's line endings.

Two tolerances of loosely produced patches are gated by :class:`PatchMode`:

- a raw empty line inside a hunk (missing the one-character prefix) is
  skipped in ``LENIENT`` mode and rejected in ``STRICT`` mode;
- a hunk whose body covers fewer original lines than ``old_count`` gets the
  missing lines copied through as context in ``LENIENT`` mode and is rejected
  in ``STRICT`` mode.

Example:
    >>> apply_patch("a\\nb\\nc", "@@ -2,1 +2,1 @@\\n-b\\n+B")
    'a\\nB\\nc'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import structlog

from agentfs.domain.errors import (
    ContextMismatchError,
    InvalidArgumentError,
    RemovalMismatchError,
)

logger = structlog.get_logger()

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
HUNK_HEADER_PREFIX = "@@ "
NO_NEWLINE_MARKER = "\\ No newline at end of file"


class PatchMode(str, Enum):
    """How tolerant the engine is of sloppy patches."""

    LENIENT = "lenient"
    STRICT = "strict"

    @classmethod
    def parse(cls, value: "PatchMode | str | None") -> "PatchMode":
        if isinstance(value, PatchMode):
            return value
        token = str(value or "").strip().lower()
        if not token:
            return cls.LENIENT
        try:
            return cls(token)
        except ValueError:
            raise InvalidArgumentError(f"unknown patch mode: {value!r}") from None


class LineKind(Enum):
    """Kind of a hunk body line, keyed by its prefix character."""

    CONTEXT = " "
    REMOVAL = "-"
    ADDITION = "+"


@dataclass(frozen=True)
class HunkLine:
    kind: LineKind
    text: str


@dataclass(frozen=True)
class Hunk:
    """One ``@@ -a,b +c,d @@`` block. Line numbers are 1-based."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[HunkLine, ...] = ()
    index: int = 1

    @property
    def old_end(self) -> int:
        """0-based position the cursor should reach once the hunk is consumed."""
        return self.old_start - 1 + self.old_count


@dataclass(frozen=True)
class _Cursor:
    """Read position into the original lines (0-based)."""

    position: int = 0

    def advance(self, step: int = 1) -> "_Cursor":
        return _Cursor(self.position + step)


def split_lines(text: str) -> List[str]:
    """Split on LF, dropping a CR that precedes it. Used for patch and original."""
    return re.split(r"\r?\n", text or "")


def parse_hunk_header(line: str) -> Optional[Tuple[int, int, int, int]]:
    """Parse ``@@ -a[,b] +c[,d] @@``; counts default to 1.

    Returns None for lines that are not headers at all. A line that starts
    like a header but does not parse raises :class:`InvalidArgumentError`.
    """
    match = HUNK_HEADER_RE.match(line)
    if match is None:
        if line.startswith(HUNK_HEADER_PREFIX):
            raise InvalidArgumentError(
                "malformed hunk header",
                details={"header": line},
            )
        return None
    old_start, old_count, new_start, new_count = match.groups()
    return (
        int(old_start),
        int(old_count) if old_count is not None else 1,
        int(new_start),
        int(new_count) if new_count is not None else 1,
    )


_PREFIX_KINDS = {kind.value: kind for kind in LineKind}


def parse_patch(patch: str, mode: PatchMode | str = PatchMode.LENIENT) -> List[Hunk]:
    """Parse a unified diff into hunks."""
    mode = PatchMode.parse(mode)
    lines = split_lines(patch)
    last_index = len(lines) - 1
    hunks: List[Hunk] = []

    i = 0
    while i < len(lines):
        header = parse_hunk_header(lines[i])
        if header is None:
            # file headers / metadata before the first hunk
            i += 1
            continue
        i += 1

        body: List[HunkLine] = []
        while i < len(lines) and not lines[i].startswith(HUNK_HEADER_PREFIX):
            raw = lines[i]
            line_no = i + 1
            i += 1

            if raw == NO_NEWLINE_MARKER:
                continue
            if raw == "":
                if mode is PatchMode.STRICT and line_no - 1 != last_index:
                    raise InvalidArgumentError(
                        "empty patch line without prefix",
                        details={"hunk": len(hunks) + 1, "patch_line": line_no},
                    )
                continue

            kind = _PREFIX_KINDS.get(raw[0])
            if kind is None:
                logger.warning(
                    "patch_line_skipped",
                    hunk=len(hunks) + 1,
                    patch_line=line_no,
                    content=raw,
                )
                continue
            body.append(HunkLine(kind=kind, text=raw[1:]))

        old_start, old_count, new_start, new_count = header
        hunks.append(
            Hunk(
                old_start=old_start,
                old_count=old_count,
                new_start=new_start,
                new_count=new_count,
                lines=tuple(body),
                index=len(hunks) + 1,
            )
        )
    return hunks


def _copy_until(
    original: Sequence[str],
    cursor: _Cursor,
    stop: int,
) -> Tuple[_Cursor, List[str]]:
    """Pass original lines through unchanged up to `stop` (exclusive)."""
    end = min(stop, len(original))
    if cursor.position >= end:
        return cursor, []
    return _Cursor(end), list(original[cursor.position:end])


def _mismatch_details(
    hunk: Hunk,
    original: Sequence[str],
    cursor: _Cursor,
    expected: str,
) -> dict:
    actual = original[cursor.position] if cursor.position < len(original) else None
    return {
        "hunk": hunk.index,
        "line": cursor.position + 1,
        "expected": expected,
        "actual": actual,
    }


def _matches(original: Sequence[str], cursor: _Cursor, text: str) -> bool:
    return cursor.position < len(original) and original[cursor.position] == text


def _apply_body(
    original: Sequence[str],
    hunk: Hunk,
    cursor: _Cursor,
) -> Tuple[_Cursor, List[str]]:
    emitted: List[str] = []
    for line in hunk.lines:
        if line.kind is LineKind.ADDITION:
            emitted.append(line.text)
            continue
        if not _matches(original, cursor, line.text):
            details = _mismatch_details(hunk, original, cursor, line.text)
            if line.kind is LineKind.CONTEXT:
                raise ContextMismatchError("Patch failed: context mismatch", details=details)
            raise RemovalMismatchError("Patch failed: removal mismatch", details=details)
        if line.kind is LineKind.CONTEXT:
            emitted.append(line.text)
        cursor = cursor.advance()
    return cursor, emitted


def _settle_hunk_end(
    original: Sequence[str],
    hunk: Hunk,
    cursor: _Cursor,
    mode: PatchMode,
) -> Tuple[_Cursor, List[str]]:
    """Handle a hunk body that stopped short of its declared old range."""
    target = hunk.old_end
    if cursor.position >= target:
        return cursor, []
    if mode is PatchMode.STRICT:
        raise InvalidArgumentError(
            "hunk body covers fewer original lines than its header declares",
            details={
                "hunk": hunk.index,
                "old_count": hunk.old_count,
                "consumed": cursor.position - (hunk.old_start - 1),
            },
        )
    logger.debug(
        "patch_hunk_padded",
        hunk=hunk.index,
        missing=target - cursor.position,
    )
    return _copy_until(original, cursor, target)


def apply_hunks(
    original: Sequence[str],
    hunks: Sequence[Hunk],
    mode: PatchMode | str = PatchMode.LENIENT,
) -> List[str]:
    """Apply parsed hunks to original lines and return the new lines."""
    mode = PatchMode.parse(mode)
    cursor = _Cursor()
    output: List[str] = []
    for hunk in hunks:
        cursor, passed = _copy_until(original, cursor, hunk.old_start - 1)
        output.extend(passed)
        cursor, emitted = _apply_body(original, hunk, cursor)
        output.extend(emitted)
        cursor, padded = _settle_hunk_end(original, hunk, cursor, mode)
        output.extend(padded)
    cursor, tail = _copy_until(original, cursor, len(original))
    output.extend(tail)
    return output


def apply_patch(
    original: str,
    patch: str,
    mode: PatchMode | str = PatchMode.LENIENT,
) -> str:
    """Apply a unified diff to `original` and return the patched text.

    Raises:
        ContextMismatchError: a context line does not match the original.
        RemovalMismatchError: a removal line does not match the original.
        InvalidArgumentError: malformed header, or a strict-mode violation.
    """
    mode = PatchMode.parse(mode)
    hunks = parse_patch(patch, mode)
    original_lines = split_lines(original)
    result = apply_hunks(original_lines, hunks, mode)
    logger.debug(
        "patch_applied",
        hunks=len(hunks),
        original_lines=len(original_lines),
        result_lines=len(result),
        mode=mode.value,
    )
    return "\n".join(result)


class PatchEngine:
    """Stateless applier bound to one :class:`PatchMode`."""

    def __init__(self, mode: PatchMode | str = PatchMode.LENIENT):
        self.mode = PatchMode.parse(mode)

    def parse(self, patch: str) -> List[Hunk]:
        return parse_patch(patch, self.mode)

    def apply(self, original: str, patch: str) -> str:
        return apply_patch(original, patch, self.mode)

    def __repr__(self) -> str:
        return f"PatchEngine(mode={self.mode.value!r})"


__all__ = [
    "HUNK_HEADER_RE",
    "Hunk",
    "HunkLine",
    "LineKind",
    "PatchEngine",
    "PatchMode",
    "apply_hunks",
    "apply_patch",
    "parse_hunk_header",
    "parse_patch",
    "split_lines",
]
