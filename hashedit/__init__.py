"""
hashedit: safe text edits for AI coding agents.

Public API for library usage::

    from hashedit import PatchApplier, format_hash_lines

    print(format_hash_lines(content))          # shown to the model
    result = PatchApplier().apply_hashline(content, edits)
    if not result.success:
        print(result.error)
"""

from .config import EditConfig
from .diff_display import (
    DiffResult, render_diff, generate_unified_diff, format_colored_diff,
)
from .editing import (
    PatchApplier, ApplyResult, EditError, HashlineMismatchError,
    format_hash_lines, parse_hashline_edits, apply_hashline_edits,
    parse_diff_hunks, apply_diff_to_content,
)

__version__ = "0.1.0"

__all__ = [
    "EditConfig",
    "DiffResult", "render_diff", "generate_unified_diff", "format_colored_diff",
    "PatchApplier", "ApplyResult", "EditError", "HashlineMismatchError",
    "format_hash_lines", "parse_hashline_edits", "apply_hashline_edits",
    "parse_diff_hunks", "apply_diff_to_content",
]
