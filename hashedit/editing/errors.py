"""
Error taxonomy for the editing core.

Every failure raised by the engines is an ``EditError`` subclass, so callers
can treat the family as a closed sum and switch on ``kind``.  The hashline
mismatch error lives next to the engine that builds it
(:mod:`hashedit.editing.hashline_edit`).
"""

from __future__ import annotations


class EditError(Exception):
    """Base class for all editing-core failures."""

    kind = "edit"


class ParseError(EditError):
    """Malformed tag, edit request or hunk syntax."""

    kind = "parse"

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.reason = message
        self.line_number = line_number
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)


class ApplyPatchError(EditError):
    """A hunk could not be located or applied unambiguously."""

    kind = "apply"

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class LineRangeError(EditError):
    """An anchor is out of bounds or a range/pair is inverted or overlapping."""

    kind = "range"


class EditValidationError(LineRangeError):
    """An edit is structurally invalid (e.g. an insert with no content)."""
