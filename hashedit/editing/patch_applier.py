"""
Patch applier: resolves parsed hunks against file content and splices them in.

The module-level functions are the engine: they take strings, return
strings and raise :class:`~hashedit.editing.errors.EditError` subclasses.
:class:`PatchApplier` wraps both edit protocols behind a result object for
callers that would rather branch on ``success`` than catch exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Sequence

from ..config import EditConfig
from ..diff_display import format_colored_diff, render_diff
from .diff_parser import DiffHunk, parse_diff_hunks
from .errors import ApplyPatchError, EditError
from .hashline_edit import HashlineEdit, apply_hashline_edits, parse_hashline_edits
from .hashline_format import split_utf8_lines, stream_hash_lines_from_lines
from .normalize import (
    adjust_indentation,
    detect_line_ending,
    iter_lf_lines,
    normalize_to_lf,
    restore_line_endings,
    strip_bom,
)
from .seek_sequence import FUZZY_THRESHOLD, find_context_line, seek_sequence
from .splice import Replacement, find_overlap, order_replacements, splice_lines
from .text_match import find_edit_match

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Hunk resolution
# ---------------------------------------------------------------------------

def compute_replacements(
    lines: list[str],
    hunks: Sequence[DiffHunk],
    path: str = "<content>",
    *,
    fuzzy_threshold: float = FUZZY_THRESHOLD,
    allow_fuzzy: bool = True,
) -> list[Replacement]:
    """Locate every hunk in *lines* and return ordered replacements.

    Hunks are resolved in order with a cursor, so each one is searched for
    at or after the end of the previous match.
    """
    replacements: list[Replacement] = []
    cursor = 0

    for hunk in hunks:
        if hunk.change_context is not None:
            scope = find_context_line(
                lines, hunk.change_context, cursor,
                fuzzy_threshold=fuzzy_threshold, allow_fuzzy=allow_fuzzy,
            )
            if not scope.found:
                raise ApplyPatchError(
                    f"Failed to find context '{hunk.change_context}' in {path}",
                    path,
                )
            # the scope line is often repeated as the first old line
            first_old = hunk.old_lines[0] if hunk.old_lines else None
            if first_old is not None and first_old.strip() == hunk.change_context.strip():
                cursor = scope.index
            else:
                cursor = scope.index + 1

        if hunk.is_insertion:
            if hunk.change_context is not None:
                index = cursor
            elif lines and lines[-1] == "":
                index = len(lines) - 1
            else:
                index = len(lines)
            logger.debug("[HashEdit] Pure insertion at index %d", index)
            replacements.append(Replacement(index, 0, list(hunk.new_lines)))
            continue

        pattern = list(hunk.old_lines)
        new_slice = list(hunk.new_lines)
        match = seek_sequence(
            lines, pattern, cursor, hunk.is_end_of_file,
            fuzzy_threshold=fuzzy_threshold, allow_fuzzy=allow_fuzzy,
        )

        if not match.found and pattern[-1] == "":
            pattern = pattern[:-1]
            if new_slice and new_slice[-1] == "":
                new_slice = new_slice[:-1]
            match = seek_sequence(
                lines, pattern, cursor, hunk.is_end_of_file,
                fuzzy_threshold=fuzzy_threshold, allow_fuzzy=allow_fuzzy,
            )

        if not match.found:
            raise ApplyPatchError(
                f"Failed to find expected lines in {path}:\n"
                + "\n".join(hunk.old_lines),
                path,
            )

        logger.debug(
            "[HashEdit] Hunk matched at line %d (confidence %.2f)",
            match.index + 1, match.confidence,
        )
        replacements.append(Replacement(match.index, len(pattern), new_slice))
        cursor = match.index + len(pattern)

    return order_replacements(replacements)


def apply_replacements(
    lines: Sequence[str],
    replacements: Sequence[Replacement],
    path: str = "<content>",
) -> list[str]:
    """Splice ordered *replacements* into *lines*, rejecting overlaps."""
    overlap = find_overlap(replacements)
    if overlap is not None:
        first, second = overlap
        raise ApplyPatchError(
            f"Hunks overlap in {path}: lines {first.start_index + 1}-"
            f"{first.end_index} and {second.start_index + 1}-{second.end_index}",
            path,
        )
    return splice_lines(lines, replacements)


def _apply_simple_replace(
    content: str,
    hunk: DiffHunk,
    path: str,
    fuzzy_threshold: float,
    allow_fuzzy: bool,
) -> str:
    """Replace one block of text found anywhere in the file."""
    old_text = "\n".join(hunk.old_lines)
    new_text = "\n".join(hunk.new_lines)

    outcome = find_edit_match(
        content, old_text, allow_fuzzy=allow_fuzzy, threshold=fuzzy_threshold,
    )

    if outcome.occurrences and outcome.occurrences > 1:
        raise ApplyPatchError(
            f"Found {outcome.occurrences} occurrences of the text in {path}. "
            "The text must be unique. Please provide more context to make it unique.",
            path,
        )
    if outcome.fuzzy_matches and outcome.fuzzy_matches > 1:
        raise ApplyPatchError(
            f"Found {outcome.fuzzy_matches} equally close matches in {path}. "
            "Please provide more context to make it unique.",
            path,
        )

    if outcome.match is None:
        closest = outcome.closest
        if closest is not None:
            similarity = round(closest.confidence * 100)
            raise ApplyPatchError(
                f"Could not find a close enough match in {path}. "
                f"Closest match ({similarity}% similar) at line {closest.start_line}.",
                path,
            )
        raise ApplyPatchError(
            f"Failed to find expected lines in {path}:\n{old_text}", path,
        )

    found = outcome.match
    replacement = adjust_indentation(old_text, found.actual_text, new_text)
    end = found.start_index + len(found.actual_text)
    result = content[:found.start_index] + replacement + content[end:]
    if not result.endswith("\n"):
        result += "\n"
    return result


def apply_diff_to_content(
    content: str,
    hunks: Sequence[DiffHunk],
    path: str = "<content>",
    *,
    fuzzy_threshold: float = FUZZY_THRESHOLD,
    allow_fuzzy: bool = True,
) -> str:
    """Apply parsed *hunks* to *content* (LF line endings) and return the result.

    Raises
    ------
    ApplyPatchError
        If a scope line or old-lines block cannot be located, an unanchored
        replacement is ambiguous, or two hunks overlap.
    """
    if not hunks:
        raise ApplyPatchError("Diff contains no hunks", path)

    if len(hunks) == 1:
        hunk = hunks[0]
        if (
            hunk.change_context is None
            and not hunk.has_context_lines
            and hunk.old_lines
        ):
            return _apply_simple_replace(
                content, hunk, path, fuzzy_threshold, allow_fuzzy,
            )

    lines = content.split("\n")
    # the trailing "" produced by a final newline is not a line
    if lines and lines[-1] == "":
        lines = lines[:-1]

    replacements = compute_replacements(
        lines, hunks, path,
        fuzzy_threshold=fuzzy_threshold, allow_fuzzy=allow_fuzzy,
    )
    new_lines = apply_replacements(lines, replacements, path)

    if not new_lines or new_lines[-1] != "":
        new_lines.append("")
    return "\n".join(new_lines)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

@dataclass
class ApplyResult:
    """Result of applying an edit to file content."""
    success: bool = False
    content: str = ""
    first_changed_line: int | None = None
    diff: str = ""
    hunks_applied: int = 0
    error: EditError | None = None

    @property
    def colored_diff(self) -> str:
        """The compact diff with ANSI colours, for terminal display."""
        return format_colored_diff(self.diff)


class PatchApplier:
    """Apply hunk patches or hashline edit batches to in-memory content.

    BOM and CRLF line endings are stripped before the engines run and
    restored on the way out.  Any :class:`EditError` becomes
    ``success=False`` with the error attached; the input is never
    partially modified.
    """

    def __init__(self, config: EditConfig | None = None) -> None:
        self._config = config or EditConfig()

    def apply_patch(self, content: str, diff_text: str, path: str = "<content>") -> ApplyResult:
        """Parse *diff_text* as hunks and apply them to *content*."""
        bom, text = strip_bom(content)
        ending = detect_line_ending(text)
        text = normalize_to_lf(text)

        try:
            hunks = parse_diff_hunks(diff_text)
            new_text = apply_diff_to_content(
                text, hunks, path,
                fuzzy_threshold=self._config.FUZZY_THRESHOLD,
                allow_fuzzy=self._config.ALLOW_FUZZY,
            )
        except EditError as exc:
            logger.warning("[HashEdit] Patch failed for %s: %s", path, exc)
            return ApplyResult(content=content, error=exc)

        return self._finish(text, new_text, bom, ending, hunks_applied=len(hunks))

    def apply_hashline(
        self,
        content: str,
        edits: Sequence[HashlineEdit | dict[str, Any]],
        path: str = "<content>",
    ) -> ApplyResult:
        """Apply a hashline batch; *edits* may be edit objects or wire dicts."""
        bom, text = strip_bom(content)
        ending = detect_line_ending(text)
        text = normalize_to_lf(text)

        try:
            batch = parse_hashline_edits(edits)
            result = apply_hashline_edits(
                text, batch,
                context_lines=self._config.MISMATCH_CONTEXT_LINES,
            )
        except EditError as exc:
            logger.warning("[HashEdit] Hashline edit failed for %s: %s", path, exc)
            return ApplyResult(content=content, error=exc)

        return self._finish(
            text, result.content, bom, ending,
            hunks_applied=len(batch),
            first_changed_line=result.first_changed_line,
        )

    def stream_tagged(self, chunks: Iterable[bytes], start_line: int = 1) -> Iterator[str]:
        """Tag UTF-8 content arriving in pieces, chunked per the config limits.

        Lines are tagged as :meth:`apply_hashline` sees them: without the
        BOM and with CRLF or lone CR endings read as LF.
        """
        return stream_hash_lines_from_lines(
            iter_lf_lines(split_utf8_lines(chunks)),
            start_line=start_line,
            max_chunk_lines=self._config.STREAM_MAX_CHUNK_LINES,
            max_chunk_bytes=self._config.STREAM_MAX_CHUNK_BYTES,
        )

    def _finish(
        self,
        before: str,
        after: str,
        bom: str,
        ending: str,
        hunks_applied: int,
        first_changed_line: int | None = None,
    ) -> ApplyResult:
        rendered = render_diff(before, after, self._config.DIFF_CONTEXT_LINES)
        if first_changed_line is None:
            first_changed_line = rendered.first_changed_line
        return ApplyResult(
            success=True,
            content=bom + restore_line_endings(after, ending),
            first_changed_line=first_changed_line,
            diff=rendered.diff,
            hunks_applied=hunks_applied,
        )
