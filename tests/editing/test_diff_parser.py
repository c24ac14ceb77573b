"""Tests for the hunk parser."""

import pytest

from hashedit.editing.diff_parser import (
    DiffHunk,
    DiffParser,
    normalize_diff,
    parse_diff_hunks,
)
from hashedit.editing.errors import ParseError


class TestParseHunks:
    def test_scoped_hunk(self):
        diff = (
            "@@ class Greeter:\n"
            "     def hello(self):\n"
            "-        return 'hi'\n"
            "+        return 'hello'"
        )
        hunks = DiffParser().parse(diff)
        assert hunks == [DiffHunk(
            change_context="class Greeter:",
            has_context_lines=True,
            old_lines=["    def hello(self):", "        return 'hi'"],
            new_lines=["    def hello(self):", "        return 'hello'"],
            is_end_of_file=False,
            lines_added=1,
            lines_removed=1,
        )]

    def test_bare_marker(self):
        hunks = parse_diff_hunks("@@\n-old\n+new")
        assert hunks[0].change_context is None
        assert hunks[0].old_lines == ["old"]
        assert hunks[0].new_lines == ["new"]
        assert not hunks[0].has_context_lines

    def test_first_hunk_without_marker(self):
        hunks = parse_diff_hunks("-old\n+new")
        assert len(hunks) == 1
        assert hunks[0].change_context is None

    def test_multiple_hunks(self):
        diff = "@@ def a():\n-x\n+y\n@@ def b():\n-p\n+q"
        hunks = parse_diff_hunks(diff)
        assert [h.change_context for h in hunks] == ["def a():", "def b():"]
        assert [h.new_lines for h in hunks] == [["y"], ["q"]]

    def test_blank_line_is_empty_context(self):
        hunks = parse_diff_hunks("@@\n a\n\n b\n-c")
        assert hunks[0].old_lines == ["a", "", "b", "c"]
        assert hunks[0].new_lines == ["a", "", "b"]
        assert hunks[0].has_context_lines

    def test_blank_line_between_hunks(self):
        hunks = parse_diff_hunks("@@\n-a\n+b\n\n@@\n-c\n+d")
        assert len(hunks) == 2
        assert hunks[1].old_lines == ["c"]

    def test_end_of_file_marker(self):
        hunks = parse_diff_hunks("@@\n last\n+appended\n*** End of File")
        assert hunks[0].is_end_of_file
        assert hunks[0].new_lines == ["last", "appended"]

    def test_pure_insertion(self):
        hunks = parse_diff_hunks("@@ import os\n+import sys")
        assert hunks[0].is_insertion
        assert hunks[0].lines_added == 1
        assert hunks[0].lines_removed == 0

    def test_unified_header_context_becomes_scope(self):
        hunks = parse_diff_hunks("@@ -10,3 +10,3 @@ def foo():\n-x\n+y")
        assert hunks[0].change_context == "def foo():"

    def test_unified_header_without_context(self):
        hunks = parse_diff_hunks("@@ -1 +1 @@\n-x\n+y")
        assert hunks[0].change_context is None

    def test_empty_input(self):
        assert parse_diff_hunks("") == []
        assert parse_diff_hunks("  \n\n") == []


class TestParseErrors:
    def test_marker_without_lines(self):
        with pytest.raises(ParseError, match="Hunk does not contain any lines") as exc_info:
            parse_diff_hunks("@@ foo")
        assert exc_info.value.line_number == 2

    def test_end_of_file_without_lines(self):
        with pytest.raises(ParseError, match="Hunk does not contain any lines"):
            parse_diff_hunks("@@\n*** End of File")

    def test_unexpected_first_line(self):
        with pytest.raises(ParseError, match=r"^Line 1: Unexpected line in hunk"):
            parse_diff_hunks("garbage\n-a")

    def test_second_hunk_needs_marker(self):
        with pytest.raises(ParseError, match="Expected hunk to start with @@") as exc_info:
            parse_diff_hunks("@@\n-a\n+b\nstray text")
        assert exc_info.value.line_number == 4
        assert exc_info.value.kind == "parse"


class TestNormalizeDiff:
    def test_code_fence(self):
        hunks = parse_diff_hunks("```diff\n@@\n-a\n+b\n```")
        assert hunks[0].old_lines == ["a"]
        assert hunks[0].new_lines == ["b"]

    def test_patch_envelope(self):
        diff = (
            "*** Begin Patch\n"
            "*** Update File: src/app.py\n"
            "@@\n-a\n+b\n"
            "*** End Patch"
        )
        assert normalize_diff(diff) == "@@\n-a\n+b"

    def test_file_headers(self):
        diff = "--- a/x.py\n+++ b/x.py\n@@ -1 +1 @@\n-a\n+b"
        hunks = parse_diff_hunks(diff)
        assert hunks[0].old_lines == ["a"]

    def test_git_metadata(self):
        diff = "diff --git a/x.py b/x.py\nindex 3f2a1b0..9c8d7e6 100644\n@@\n-a\n+b"
        assert normalize_diff(diff) == "@@\n-a\n+b"

    def test_removed_line_that_looks_like_header(self):
        hunks = parse_diff_hunks("@@\n--- old comment\n+-- new comment")
        assert hunks[0].old_lines == ["-- old comment"]
        assert hunks[0].new_lines == ["-- new comment"]

    def test_fence_as_context_line_is_kept(self):
        hunks = parse_diff_hunks("@@\n # Title\n ```python\n-x = 1\n+x = 2\n ```\n end")
        assert hunks[0].old_lines == ["# Title", "```python", "x = 1", "```", "end"]
        assert hunks[0].new_lines == ["# Title", "```python", "x = 2", "```", "end"]

    def test_outer_fence_removed_inner_fence_kept(self):
        hunks = parse_diff_hunks("```diff\n@@\n ```python\n-x\n+y\n```\n")
        assert hunks[0].old_lines == ["```python", "x"]
        assert hunks[0].new_lines == ["```python", "y"]

    def test_header_lookalike_pair_inside_hunk(self):
        hunks = parse_diff_hunks("@@\n select 1;\n--- old note\n+++ new note\n select 2;")
        assert hunks[0].old_lines == ["select 1;", "-- old note", "select 2;"]
        assert hunks[0].new_lines == ["select 1;", "++ new note", "select 2;"]

    def test_header_pair_after_git_metadata(self):
        diff = "diff --git a/q.sql b/q.sql\n--- a/q.sql\n+++ b/q.sql\n@@\n-a\n+b"
        assert normalize_diff(diff) == "@@\n-a\n+b"

    def test_crlf(self):
        hunks = parse_diff_hunks("@@\r\n-a\r\n+b\r\n")
        assert hunks[0].old_lines == ["a"]
        assert hunks[0].new_lines == ["b"]

    def test_no_newline_marker(self):
        hunks = parse_diff_hunks("@@\n-a\n\\ No newline at end of file\n+b")
        assert hunks[0].old_lines == ["a"]
        assert hunks[0].new_lines == ["b"]

    def test_trailing_blank_lines(self):
        assert normalize_diff("@@\n-a\n+b\n\n\n") == "@@\n-a\n+b"
