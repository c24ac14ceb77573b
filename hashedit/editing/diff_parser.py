"""
Diff parser: turns model-authored hunk text into :class:`DiffHunk` objects.

Accepted input is a loose superset of the unified diff body::

    @@ class Greeter:
     def hello(self):
    -    return "hi"
    +    return "hello"
    *** End of File

Each hunk opens with ``@@ <scope line>``, a bare ``@@`` or a unified
``@@ -a,b +c,d @@`` header; the first hunk may omit the marker entirely.
Code fences, patch envelopes and file headers are stripped beforehand.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .errors import ParseError

logger = logging.getLogger(__name__)

# Markers
EOF_MARKER = "*** End of File"
_CONTEXT_MARKER = "@@ "
_EMPTY_CONTEXT_MARKER = "@@"

# Patterns
_UNIFIED_HEADER = re.compile(
    r"^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@(?:\s?(.*))?$"
)
_FENCE = re.compile(r"^```[\w+-]*\s*$")
_ENVELOPE = re.compile(
    r"^\*\*\* (?:Begin Patch|End Patch|Update File:.*)\s*$"
)
_GIT_HEADER = re.compile(r"^(?:diff --git |index [0-9a-f]+\.\.[0-9a-f]+)")
_NO_NEWLINE = "\\ No newline at end of file"


@dataclass
class DiffHunk:
    """A single hunk: old lines to find, new lines to put in their place."""
    change_context: str | None = None     # scope line to seek first
    has_context_lines: bool = False
    old_lines: list[str] = field(default_factory=list)
    new_lines: list[str] = field(default_factory=list)
    is_end_of_file: bool = False
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def is_insertion(self) -> bool:
        return len(self.old_lines) == 0


def normalize_diff(diff_text: str) -> str:
    """Strip the wrapping models tend to put around hunks.

    Removes a Markdown code fence wrapping the whole diff, ``*** Begin
    Patch`` style envelopes, git metadata lines, ``---``/``+++`` file header
    pairs ahead of the first hunk line and ``\\ No newline at end of file``
    markers, then trailing blank lines.
    """
    lines = diff_text.replace("\r\n", "\n").split("\n")
    non_blank = [i for i, line in enumerate(lines) if line.strip()]
    outer = {non_blank[0], non_blank[-1]} if non_blank else set()

    kept: list[str] = []
    in_preamble = True
    i = 0
    while i < len(lines):
        line = lines[i]
        # fences only count as the outermost lines; inside they are context
        if i in outer and _FENCE.match(line):
            i += 1
            continue
        if _ENVELOPE.match(line) or _GIT_HEADER.match(line) or line == _NO_NEWLINE:
            i += 1
            continue
        # "--- x" / "+++ y" is a header pair only before the first hunk line
        if (
            in_preamble
            and line.startswith("--- ")
            and i + 1 < len(lines)
            and lines[i + 1].startswith("+++ ")
        ):
            i += 2
            continue
        if line.strip():
            in_preamble = False
        kept.append(line)
        i += 1

    while kept and not kept[-1].strip():
        kept.pop()
    return "\n".join(kept)


class DiffParser:
    """Parse hunk text into :class:`DiffHunk` objects."""

    def parse(self, diff_text: str) -> list[DiffHunk]:
        """Parse *diff_text* into hunks.

        Parameters
        ----------
        diff_text:
            The raw hunk text as authored by the model.

        Returns
        -------
        list[DiffHunk]
            Hunks in input order; empty if the text holds nothing but
            wrapping.

        Raises
        ------
        ParseError
            On a hunk with no content lines, or a line that cannot start a
            hunk.  The error carries the 1-based line number in the
            normalised text.
        """
        normalized = normalize_diff(diff_text)
        if not normalized:
            return []

        lines = normalized.split("\n")
        hunks: list[DiffHunk] = []
        i = 0
        while i < len(lines):
            # blank lines between hunks
            if not lines[i].strip():
                i += 1
                continue
            hunk, consumed = self._parse_one(
                lines[i:], i + 1, allow_missing_marker=not hunks,
            )
            hunks.append(hunk)
            i += consumed

        logger.debug("[HashEdit] Parsed %d hunk(s)", len(hunks))
        return hunks

    # ------------------------------------------------------------------
    # Internal parsing
    # ------------------------------------------------------------------

    def _parse_one(
        self,
        lines: list[str],
        line_number: int,
        allow_missing_marker: bool,
    ) -> tuple[DiffHunk, int]:
        """Parse one hunk from the head of *lines*; return it and lines used."""
        header = lines[0]
        hunk = DiffHunk()

        unified = _UNIFIED_HEADER.match(header)
        if unified:
            hunk.change_context = (unified.group(1) or "").strip() or None
            start = 1
        elif header.rstrip() == _EMPTY_CONTEXT_MARKER:
            start = 1
        elif header.startswith(_CONTEXT_MARKER):
            hunk.change_context = header[len(_CONTEXT_MARKER):].strip() or None
            start = 1
        elif allow_missing_marker:
            start = 0
        else:
            raise ParseError(
                f"Expected hunk to start with @@ context marker, got: {header!r}",
                line_number,
            )

        if start >= len(lines):
            raise ParseError("Hunk does not contain any lines", line_number + 1)

        parsed = 0
        for line in lines[start:]:
            if line == EOF_MARKER:
                if parsed == 0:
                    raise ParseError(
                        "Hunk does not contain any lines", line_number + start,
                    )
                hunk.is_end_of_file = True
                parsed += 1
                break

            if line == "":
                hunk.has_context_lines = True
                hunk.old_lines.append("")
                hunk.new_lines.append("")
            elif line[0] == " ":
                hunk.has_context_lines = True
                hunk.old_lines.append(line[1:])
                hunk.new_lines.append(line[1:])
            elif line[0] == "+":
                hunk.new_lines.append(line[1:])
                hunk.lines_added += 1
            elif line[0] == "-":
                hunk.old_lines.append(line[1:])
                hunk.lines_removed += 1
            else:
                if parsed == 0:
                    raise ParseError(
                        f"Unexpected line in hunk: {line!r}. Lines must start "
                        f"with ' ' (context), '+' (add), or '-' (remove)",
                        line_number + start,
                    )
                # start of the next hunk
                break
            parsed += 1

        if parsed == 0:
            raise ParseError("Hunk does not contain any lines", line_number + start)

        logger.debug(
            "[HashEdit] Hunk at diff line %d: scope=%r, -%d/+%d, eof=%s",
            line_number, hunk.change_context,
            hunk.lines_removed, hunk.lines_added, hunk.is_end_of_file,
        )
        return hunk, start + parsed


def parse_diff_hunks(diff_text: str) -> list[DiffHunk]:
    """Module-level shortcut for ``DiffParser().parse(diff_text)``."""
    return DiffParser().parse(diff_text)
