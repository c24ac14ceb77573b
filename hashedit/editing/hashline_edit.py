"""
Hashline edit engine: applies batches of tag-anchored edits.

Every tag an edit references is checked against the live content before
anything changes.  All stale tags in a batch are reported together in a
single :class:`HashlineMismatchError`; a batch is either applied in full or
not at all.  Edits are resolved against the original line numbering, never
against a numbering shifted by earlier edits in the same batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from .errors import EditError, EditValidationError, LineRangeError, ParseError
from .line_hash import LineTag, compute_line_hash, parse_tag
from .splice import Replacement, find_overlap, order_replacements, splice_lines

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 2


# ---------------------------------------------------------------------------
# Failure data
# ---------------------------------------------------------------------------

@dataclass
class HashMismatch:
    """A referenced tag whose hash no longer matches the live line."""
    line: int
    expected: str      # hash supplied by the caller
    actual: str        # hash of the live line
    content: str       # live line content


@dataclass
class AffectedRange:
    """Inclusive run of contiguous mismatched line numbers."""
    start: int
    end: int


def compact_line_ranges(line_numbers: Iterable[int]) -> list[AffectedRange]:
    """Merge line numbers into maximal contiguous ranges.

    ``{2, 3, 4}`` becomes ``[2-4]``; ``{2, 3, 5, 7}`` becomes
    ``[2-3], [5-5], [7-7]``.
    """
    ranges: list[AffectedRange] = []
    for num in sorted(set(line_numbers)):
        if ranges and num == ranges[-1].end + 1:
            ranges[-1].end = num
        else:
            ranges.append(AffectedRange(start=num, end=num))
    return ranges


class HashlineMismatchError(EditError):
    """One or more tags are stale.

    Attributes
    ----------
    mismatches:
        Every stale tag in the batch, in the order they were referenced.
    affected_ranges:
        The mismatched line numbers compacted into contiguous ranges.
    remaps:
        ``"{line}#{stale}"`` → ``"{line}#{live}"`` for each mismatch.
    """

    kind = "mismatch"

    def __init__(
        self,
        mismatches: list[HashMismatch],
        file_lines: Sequence[str],
        context_lines: int = DEFAULT_CONTEXT_LINES,
    ) -> None:
        self.mismatches = mismatches
        self.affected_ranges = compact_line_ranges(m.line for m in mismatches)
        self.remaps: dict[str, str] = {
            f"{m.line}#{m.expected}": f"{m.line}#{m.actual}" for m in mismatches
        }
        super().__init__(self._format_message(mismatches, file_lines, context_lines))

    @staticmethod
    def _format_message(
        mismatches: list[HashMismatch],
        file_lines: Sequence[str],
        context_lines: int,
    ) -> str:
        marked = {m.line for m in mismatches}

        shown: set[int] = set()
        for num in marked:
            lo = max(1, num - context_lines)
            hi = min(len(file_lines), num + context_lines)
            shown.update(range(lo, hi + 1))

        count = len(mismatches)
        out = [
            f"{count} line{'s have' if count > 1 else ' has'} changed since last read. "
            "Use the updated LINE#HASH references shown below (>>> marks changed lines).",
            "",
        ]

        previous = None
        for num in sorted(shown):
            if previous is not None and num > previous + 1:
                out.append("    ...")
            previous = num

            text = file_lines[num - 1]
            prefix = ">>> " if num in marked else "    "
            out.append(f"{prefix}{num}#{compute_line_hash(num, text)}|{text}")

        return "\n".join(out)


# ---------------------------------------------------------------------------
# Edit operations
# ---------------------------------------------------------------------------

@dataclass
class HashlineEdit:
    """Base class for tag-anchored edits."""

    def anchors(self) -> list[LineTag]:
        """Tags this edit depends on, in reference order."""
        raise NotImplementedError

    def validate(self) -> None:
        """Raise if the edit is structurally invalid."""

    def resolve(self, eof_index: int) -> Replacement:
        """Position this edit against the original numbering.

        *eof_index* is where an unanchored append lands.
        """
        raise NotImplementedError


def _require_content(edit: HashlineEdit, content: list[str]) -> None:
    if not content:
        raise EditValidationError(
            f"{type(edit).__name__} requires non-empty content; "
            "use a replace with empty content to delete lines"
        )


@dataclass
class ReplaceLine(HashlineEdit):
    """Replace one line. Empty content deletes it."""
    tag: LineTag
    content: list[str] = field(default_factory=list)

    def anchors(self) -> list[LineTag]:
        return [self.tag]

    def resolve(self, eof_index: int) -> Replacement:
        return Replacement(self.tag.line - 1, 1, list(self.content))


@dataclass
class ReplaceRange(HashlineEdit):
    """Replace an inclusive range of lines. Empty content deletes them."""
    first: LineTag
    last: LineTag
    content: list[str] = field(default_factory=list)

    def anchors(self) -> list[LineTag]:
        if self.first == self.last:
            return [self.first]
        return [self.first, self.last]

    def validate(self) -> None:
        if self.first.line > self.last.line:
            raise LineRangeError(
                f"Range start line {self.first.line} must be <= "
                f"end line {self.last.line}"
            )

    def resolve(self, eof_index: int) -> Replacement:
        length = self.last.line - self.first.line + 1
        return Replacement(self.first.line - 1, length, list(self.content))


@dataclass
class InsertAfter(HashlineEdit):
    """Insert lines after ``after``, or at end of file when unanchored."""
    content: list[str]
    after: LineTag | None = None

    def anchors(self) -> list[LineTag]:
        return [self.after] if self.after else []

    def validate(self) -> None:
        _require_content(self, self.content)

    def resolve(self, eof_index: int) -> Replacement:
        index = self.after.line if self.after else eof_index
        return Replacement(index, 0, list(self.content))


@dataclass
class InsertBefore(HashlineEdit):
    """Insert lines before ``before``, or at beginning of file when unanchored."""
    content: list[str]
    before: LineTag | None = None

    def anchors(self) -> list[LineTag]:
        return [self.before] if self.before else []

    def validate(self) -> None:
        _require_content(self, self.content)

    def resolve(self, eof_index: int) -> Replacement:
        index = self.before.line - 1 if self.before else 0
        return Replacement(index, 0, list(self.content))


@dataclass
class InsertBetween(HashlineEdit):
    """Insert lines between two anchors, immediately before ``before``."""
    after: LineTag
    before: LineTag
    content: list[str]

    def anchors(self) -> list[LineTag]:
        return [self.after, self.before]

    def validate(self) -> None:
        _require_content(self, self.content)
        if self.after.line >= self.before.line:
            raise LineRangeError(
                f"insert requires after ({self.after.line}) < "
                f"before ({self.before.line})"
            )

    def resolve(self, eof_index: int) -> Replacement:
        return Replacement(self.before.line - 1, 0, list(self.content))


@dataclass
class HashlineEditResult:
    """Outcome of a successful batch."""
    content: str
    first_changed_line: int | None = None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _out_of_range_message(lines: list[int], line_count: int) -> str:
    if len(lines) == 1:
        return f"Line {lines[0]} does not exist (file has {line_count} lines)"
    joined = ", ".join(str(n) for n in lines)
    return f"Lines {joined} do not exist (file has {line_count} lines)"


def validate_line_ref(ref: LineTag, file_lines: Sequence[str]) -> None:
    """Check a single tag against *file_lines*.

    Raises
    ------
    LineRangeError
        If the line is out of range.
    HashlineMismatchError
        If the hash does not match the live line.
    """
    if ref.line < 1 or ref.line > len(file_lines):
        raise LineRangeError(_out_of_range_message([ref.line], len(file_lines)))

    text = file_lines[ref.line - 1]
    actual = compute_line_hash(ref.line, text)
    if actual != ref.hash:
        raise HashlineMismatchError(
            [HashMismatch(ref.line, ref.hash, actual, text)], file_lines
        )


def _collect_mismatches(
    edits: Sequence[HashlineEdit],
    file_lines: Sequence[str],
) -> list[HashMismatch]:
    """Check every referenced tag; report all failures, never just the first."""
    line_count = len(file_lines)
    tags: list[LineTag] = []
    seen: set[LineTag] = set()
    for edit in edits:
        for tag in edit.anchors():
            if tag not in seen:
                seen.add(tag)
                tags.append(tag)

    out_of_range = sorted({t.line for t in tags if t.line < 1 or t.line > line_count})
    if out_of_range:
        raise LineRangeError(_out_of_range_message(out_of_range, line_count))

    mismatches: list[HashMismatch] = []
    for tag in tags:
        text = file_lines[tag.line - 1]
        actual = compute_line_hash(tag.line, text)
        # a stale tag is never relocated, even if its hash matches elsewhere
        if actual != tag.hash:
            mismatches.append(HashMismatch(tag.line, tag.hash, actual, text))
    return mismatches


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def apply_hashline_edits(
    content: str,
    edits: Sequence[HashlineEdit],
    *,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> HashlineEditResult:
    """Apply a batch of hashline edits to *content*.

    Parameters
    ----------
    content:
        Current file content (LF line endings).
    edits:
        The batch.  Every tag is validated before any line changes.
    context_lines:
        Lines of tagged context shown around each mismatch in the error.

    Returns
    -------
    HashlineEditResult
        New content and the 1-indexed first changed line (``None`` for an
        empty batch).

    Raises
    ------
    HashlineMismatchError
        If any referenced tag is stale.  Nothing is applied.
    LineRangeError
        For out-of-range anchors, inverted ranges/pairs or overlapping edits.
    EditValidationError
        For inserts with empty content.
    """
    if not edits:
        return HashlineEditResult(content=content, first_changed_line=None)

    file_lines = content.split("\n")

    for edit in edits:
        edit.validate()

    mismatches = _collect_mismatches(edits, file_lines)
    if mismatches:
        logger.debug(
            "[HashEdit] %d stale tag(s) at lines %s",
            len(mismatches), [m.line for m in mismatches],
        )
        raise HashlineMismatchError(mismatches, file_lines, context_lines)

    # An empty file splits to [""]; unanchored inserts replace that line.
    if file_lines == [""] and all(not e.anchors() for e in edits):
        file_lines = []

    # newline-terminated content ends in "", which appends stay in front of
    eof_index = len(file_lines)
    if eof_index > 1 and file_lines[-1] == "":
        eof_index -= 1

    replacements = order_replacements(
        [edit.resolve(eof_index) for edit in edits]
    )
    overlap = find_overlap(replacements)
    if overlap is not None:
        first, second = overlap
        raise LineRangeError(
            f"Overlapping edits: lines {first.start_index + 1}-"
            f"{max(first.end_index, first.start_index + 1)} and "
            f"{second.start_index + 1}-"
            f"{max(second.end_index, second.start_index + 1)} "
            "cannot both be applied in one batch"
        )

    new_lines = splice_lines(file_lines, replacements)
    first_changed = min(r.start_index for r in replacements) + 1

    logger.debug(
        "[HashEdit] Applied %d edit(s), first changed line %d",
        len(edits), first_changed,
    )
    return HashlineEditResult(
        content="\n".join(new_lines),
        first_changed_line=first_changed,
    )


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def _content_lines(value: Any, index: int) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        if value == "":
            return []
        if value.endswith("\n"):
            value = value[:-1]
        return value.split("\n")
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ParseError("'content' must be a string or a list of strings", index)


def _tag_field(item: dict, key: str, index: int, required: bool = True) -> LineTag | None:
    raw = item.get(key)
    if raw is None:
        if required:
            raise ParseError(f"'{item.get('op')}' edit requires '{key}'", index)
        return None
    if not isinstance(raw, str):
        raise ParseError(f"'{key}' must be a \"LINE#HASH\" string", index)
    try:
        return parse_tag(raw)
    except ParseError as exc:
        raise ParseError(exc.reason, index) from exc


def parse_hashline_edits(raw_edits: Sequence[dict | HashlineEdit]) -> list[HashlineEdit]:
    """Convert model-authored edit dicts into :class:`HashlineEdit` objects.

    Accepted shapes::

        {"op": "replace", "tag": "5#0077f9", "content": [...]}
        {"op": "replace", "first": "5#..", "last": "9#..", "content": [...]}
        {"op": "delete", "tag": "5#.."}            # or first/last
        {"op": "append", "after": "5#..", "content": [...]}   # after optional
        {"op": "prepend", "before": "5#..", "content": [...]} # before optional
        {"op": "insert", "after": "5#..", "before": "7#..", "content": [...]}

    ``content`` may be a list of lines or a single string (split on newlines,
    one trailing newline ignored).  Parse errors carry the 1-based position
    of the offending edit as their line number.
    Items that are already :class:`HashlineEdit` objects pass through.
    """
    edits: list[HashlineEdit] = []
    for index, item in enumerate(raw_edits, start=1):
        if isinstance(item, HashlineEdit):
            edits.append(item)
            continue
        if not isinstance(item, dict):
            raise ParseError("Each edit must be an object", index)

        op = item.get("op")
        content = _content_lines(item.get("content"), index)

        if op in ("replace", "delete"):
            if op == "delete":
                content = []
            if "tag" in item:
                edits.append(ReplaceLine(_tag_field(item, "tag", index), content))
            elif "first" in item or "last" in item:
                edits.append(ReplaceRange(
                    _tag_field(item, "first", index),
                    _tag_field(item, "last", index),
                    content,
                ))
            else:
                raise ParseError(f"'{op}' edit requires 'tag' or 'first'/'last'", index)
        elif op in ("append", "insert_after"):
            edits.append(InsertAfter(content, _tag_field(item, "after", index, required=False)))
        elif op in ("prepend", "insert_before"):
            edits.append(InsertBefore(content, _tag_field(item, "before", index, required=False)))
        elif op in ("insert", "insert_between"):
            edits.append(InsertBetween(
                _tag_field(item, "after", index),
                _tag_field(item, "before", index),
                content,
            ))
        else:
            raise ParseError(f"Unknown edit op {op!r}", index)

    return edits
