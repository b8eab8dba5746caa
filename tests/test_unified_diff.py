"""Tests for the unified diff engine."""

import difflib

import pytest

from agentfs.domain.errors import (
    ContextMismatchError,
    InvalidArgumentError,
    RemovalMismatchError,
)
from agentfs.infrastructure.storage.unified_diff import (
    Hunk,
    LineKind,
    PatchEngine,
    PatchMode,
    apply_hunks,
    apply_patch,
    parse_hunk_header,
    parse_patch,
)


def make_diff(original: str, target: str, context: int = 3) -> str:
    return "\n".join(
        difflib.unified_diff(
            original.split("\n"),
            target.split("\n"),
            fromfile="a/file.txt",
            tofile="b/file.txt",
            lineterm="",
            n=context,
        )
    )


NUMBERED = "\n".join(f"line {i}" for i in range(1, 41)) + "\n"


class TestParsing:
    """Hunk header and body parsing."""

    def test_header_counts_default_to_one(self):
        assert parse_hunk_header("@@ -3 +4 @@") == (3, 1, 4, 1)
        assert parse_hunk_header("@@ -3,0 +4,2 @@ def f():") == (3, 0, 4, 2)

    def test_non_header_returns_none(self):
        assert parse_hunk_header("--- a/file.txt") is None
        assert parse_hunk_header("@@@ -1 +1 @@@") is None

    def test_malformed_header_is_invalid_argument(self):
        with pytest.raises(InvalidArgumentError):
            parse_hunk_header("@@ -x +1 @@")
        with pytest.raises(InvalidArgumentError):
            apply_patch("a", "@@ -1 +1 @@\n-a\n+b\n@@ broken @@\n")

    def test_metadata_before_first_hunk_is_skipped(self):
        patch = (
            "diff --git a/f b/f\n"
            "index 1234567..89abcde 100644\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1,2 +1,2 @@\n"
            " a\n"
            "-b\n"
            "+c\n"
        )
        hunks = parse_patch(patch)
        assert len(hunks) == 1
        assert [line.kind for line in hunks[0].lines] == [
            LineKind.CONTEXT,
            LineKind.REMOVAL,
            LineKind.ADDITION,
        ]
        assert hunks[0].lines[2].text == "c"

    def test_no_newline_marker_is_discarded(self):
        patch = "@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file"
        hunks = parse_patch(patch)
        assert len(hunks[0].lines) == 2
        assert apply_patch("a", patch) == "b"

    def test_crlf_patch_is_accepted(self):
        patch = "@@ -1,2 +1,2 @@\r\n a\r\n-b\r\n+c\r\n"
        assert apply_patch("a\nb", patch) == "a\nc"

    def test_unknown_prefix_is_skipped(self):
        patch = "@@ -1 +1 @@\n-a\n*junk*\n+b"
        assert apply_patch("a", patch) == "b"
        assert apply_patch("a", patch, PatchMode.STRICT) == "b"

    def test_hunk_indices_are_one_based(self):
        patch = "@@ -1 +1 @@\n-a\n+A\n@@ -3 +3 @@\n-c\n+C"
        assert [hunk.index for hunk in parse_patch(patch)] == [1, 2]


class TestApply:
    """Application semantics."""

    def test_multi_hunk_ordering(self):
        original = "A\nB\nC\nD\nE"
        patch = "@@ -2,1 +2,1 @@\n-B\n+B2\n@@ -4,1 +4,1 @@\n-D\n+D2"
        assert apply_patch(original, patch).split("\n") == ["A", "B2", "C", "D2", "E"]

    def test_context_only_patch_is_identity(self):
        original = "a\nb\nc\n"
        patch = "@@ -1,3 +1,3 @@\n a\n b\n c"
        assert apply_patch(original, patch) == original

    def test_empty_patch_is_identity(self):
        assert apply_patch("a\nb", "") == "a\nb"
        assert apply_patch("a\nb", "just some prose\n") == "a\nb"

    def test_addition_to_empty_original(self):
        patch = "--- /dev/null\n+++ b/new.txt\n@@ -0,0 +1,2 @@\n+x\n+y\n"
        assert apply_patch("", patch) == "x\ny\n"

    def test_insertion_does_not_advance_cursor(self):
        patch = "@@ -1,2 +1,3 @@\n a\n+inserted\n b"
        assert apply_patch("a\nb\nc", patch) == "a\ninserted\nb\nc"

    def test_crlf_original_is_normalized_to_lf(self):
        patch = "@@ -1,2 +1,2 @@\n a\n-b\n+B"
        assert apply_patch("a\r\nb\r\nc\r\n", patch) == "a\nB\nc\n"

    def test_context_mismatch(self):
        with pytest.raises(ContextMismatchError) as excinfo:
            apply_patch("a\nb\nc", "@@ -1,2 +1,2 @@\n x\n-b\n+B")
        assert excinfo.value.code == "ContextMismatch"
        assert excinfo.value.details["line"] == 1
        assert excinfo.value.details["expected"] == "x"
        assert excinfo.value.details["actual"] == "a"
        assert "context mismatch" in str(excinfo.value)

    def test_removal_mismatch(self):
        with pytest.raises(RemovalMismatchError) as excinfo:
            apply_patch("a\nb\nc", "@@ -2 +2 @@\n-z\n+B")
        assert excinfo.value.code == "RemovalMismatch"
        assert excinfo.value.details == {"hunk": 1, "line": 2, "expected": "z", "actual": "b"}

    def test_context_past_end_of_original(self):
        with pytest.raises(ContextMismatchError) as excinfo:
            apply_patch("a", "@@ -1,2 +1,2 @@\n a\n b")
        assert excinfo.value.details["actual"] is None

    def test_second_hunk_failure_aborts_whole_apply(self):
        patch = "@@ -1 +1 @@\n-a\n+A\n@@ -3 +3 @@\n-nope\n+C"
        with pytest.raises(RemovalMismatchError) as excinfo:
            apply_patch("a\nb\nc", patch)
        assert excinfo.value.details["hunk"] == 2

    def test_apply_hunks_on_line_sequences(self):
        hunks = parse_patch("@@ -2 +2 @@\n-b\n+B")
        assert apply_hunks(["a", "b", "c"], hunks) == ["a", "B", "c"]
        assert isinstance(hunks[0], Hunk)
        assert hunks[0].old_end == 2


class TestLeniency:
    """Both tolerances are pinned in each mode."""

    TRUNCATED = "@@ -1,3 +1,3 @@\n-a\n+A"
    EMPTY_LINE = "@@ -1,2 +1,3 @@\n a\n\n+x\n b"

    def test_lenient_copies_missing_hunk_lines(self):
        assert apply_patch("a\nb\nc\nd", self.TRUNCATED) == "A\nb\nc\nd"

    def test_strict_rejects_truncated_hunk(self):
        with pytest.raises(InvalidArgumentError) as excinfo:
            apply_patch("a\nb\nc\nd", self.TRUNCATED, PatchMode.STRICT)
        assert excinfo.value.details["consumed"] == 1

    def test_lenient_skips_empty_patch_line(self):
        assert apply_patch("a\nb", self.EMPTY_LINE) == "a\nx\nb"

    def test_strict_rejects_empty_patch_line(self):
        with pytest.raises(InvalidArgumentError):
            apply_patch("a\nb", self.EMPTY_LINE, PatchMode.STRICT)

    def test_strict_accepts_trailing_newline(self):
        assert apply_patch("a", "@@ -1 +1 @@\n-a\n+b\n", PatchMode.STRICT) == "b"

    def test_strict_accepts_prefixed_empty_lines(self):
        patch = "@@ -1,3 +1,3 @@\n a\n \n-b\n+B\n"
        assert apply_patch("a\n\nb", patch, "strict") == "a\n\nB"

    def test_patch_mode_parse(self):
        assert PatchMode.parse(None) is PatchMode.LENIENT
        assert PatchMode.parse("STRICT") is PatchMode.STRICT
        with pytest.raises(InvalidArgumentError):
            PatchMode.parse("fuzzy")


class TestProperties:
    """Round-trip and mismatch detection against difflib."""

    @pytest.mark.parametrize(
        "target",
        [
            NUMBERED.replace("line 2\n", "line two\n"),
            NUMBERED.replace("line 5\n", "").replace("line 33\n", "line 33\nextra\n"),
            "prefix\n" + NUMBERED + "suffix",
            NUMBERED.rstrip("\n"),
            "",
            "completely\ndifferent\n",
        ],
    )
    def test_round_trip(self, target):
        patch = make_diff(NUMBERED, target)
        assert apply_patch(NUMBERED, patch) == target
        assert apply_patch(NUMBERED, patch, PatchMode.STRICT) == target

    def test_round_trip_produces_multiple_hunks(self):
        target = NUMBERED.replace("line 3\n", "LINE 3\n").replace("line 30\n", "LINE 30\n")
        patch = make_diff(NUMBERED, target)
        assert len(parse_patch(patch)) == 2
        assert apply_patch(NUMBERED, patch) == target

    def test_diff_of_identical_text_is_identity(self):
        assert apply_patch(NUMBERED, make_diff(NUMBERED, NUMBERED)) == NUMBERED

    def test_one_character_mutation_of_context_is_detected(self):
        target = NUMBERED.replace("line 10\n", "line ten\n")
        patch = make_diff(NUMBERED, target)
        mutated = patch.replace("\n line 8\n", "\n line 8!\n")
        assert mutated != patch
        with pytest.raises(ContextMismatchError):
            apply_patch(NUMBERED, mutated)

    def test_one_character_mutation_of_removal_is_detected(self):
        target = NUMBERED.replace("line 10\n", "line ten\n")
        patch = make_diff(NUMBERED, target)
        mutated = patch.replace("\n-line 10\n", "\n-line 1O\n")
        assert mutated != patch
        with pytest.raises(RemovalMismatchError):
            apply_patch(NUMBERED, mutated)


def test_patch_engine_binds_mode():
    engine = PatchEngine("strict")
    assert engine.mode is PatchMode.STRICT
    assert len(engine.parse("@@ -1 +1 @@\n-a\n+b")) == 1
    assert engine.apply("a", "@@ -1 +1 @@\n-a\n+b") == "b"
    with pytest.raises(InvalidArgumentError):
        engine.apply("a\nb\nc", "@@ -1,3 +1,1 @@\n-a\n+b")
