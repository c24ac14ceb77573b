"""Editing core: hashline tags, hunk patches and the matching behind them."""

from .errors import (
    EditError, ParseError, ApplyPatchError, LineRangeError, EditValidationError,
)
from .line_hash import LineTag, compute_line_hash, format_line_tag, parse_tag
from .hashline_format import (
    format_hash_line, format_hash_lines, parse_hash_line,
    split_utf8_lines, stream_hash_lines_from_lines, stream_hash_lines_from_utf8,
)
from .hashline_edit import (
    HashMismatch, AffectedRange, HashlineMismatchError, compact_line_ranges,
    HashlineEdit, ReplaceLine, ReplaceRange, InsertAfter, InsertBefore,
    InsertBetween, HashlineEditResult, apply_hashline_edits,
    parse_hashline_edits, validate_line_ref,
)
from .seek_sequence import SequenceMatch, seek_sequence, find_context_line
from .text_match import FuzzyMatch, MatchOutcome, find_edit_match
from .diff_parser import DiffHunk, DiffParser, normalize_diff, parse_diff_hunks
from .patch_applier import (
    PatchApplier, ApplyResult, apply_diff_to_content,
    compute_replacements, apply_replacements,
)

__all__ = [
    "EditError", "ParseError", "ApplyPatchError", "LineRangeError",
    "EditValidationError",
    "LineTag", "compute_line_hash", "format_line_tag", "parse_tag",
    "format_hash_line", "format_hash_lines", "parse_hash_line",
    "split_utf8_lines", "stream_hash_lines_from_lines",
    "stream_hash_lines_from_utf8",
    "HashMismatch", "AffectedRange", "HashlineMismatchError",
    "compact_line_ranges",
    "HashlineEdit", "ReplaceLine", "ReplaceRange", "InsertAfter",
    "InsertBefore", "InsertBetween", "HashlineEditResult",
    "apply_hashline_edits", "parse_hashline_edits", "validate_line_ref",
    "SequenceMatch", "seek_sequence", "find_context_line",
    "FuzzyMatch", "MatchOutcome", "find_edit_match",
    "DiffHunk", "DiffParser", "normalize_diff", "parse_diff_hunks",
    "PatchApplier", "ApplyResult", "apply_diff_to_content",
    "compute_replacements", "apply_replacements",
]
