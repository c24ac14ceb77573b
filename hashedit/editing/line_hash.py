"""
Line hash codec: per-line content hashes and the ``{line}#{hash}`` tag grammar.

The hash is xxHash32 of the line content seeded with the line number, so the
same text at a different position produces a different tag.  Six hex digits
(24 bits) keep collisions negligible while staying cheap to show a model
across thousands of lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import xxhash

from .errors import ParseError

HASH_LENGTH = 6
TAG_SEPARATOR = "#"
CONTENT_SEPARATOR = "|"

_HASH_MASK = (1 << (HASH_LENGTH * 4)) - 1
_TAG_PATTERN = re.compile(r"^(\d+)#([0-9a-f]{6})(.*)$", re.DOTALL)


@dataclass(frozen=True)
class LineTag:
    """Identity of a single line at the moment it was read."""
    line: int          # 1-indexed
    hash: str          # 6 lowercase hex chars

    def __str__(self) -> str:
        return f"{self.line}{TAG_SEPARATOR}{self.hash}"


def compute_line_hash(line: int, content: str) -> str:
    """Return the 6-char lowercase hex hash of *content* at *line*."""
    digest = xxhash.xxh32(content.encode("utf-8"), seed=line).intdigest()
    return f"{digest & _HASH_MASK:06x}"


def format_line_tag(line: int, content: str) -> str:
    """Return ``"{line}#{hash}"`` for *content* at *line*."""
    return f"{line}{TAG_SEPARATOR}{compute_line_hash(line, content)}"


def parse_tag(text: str) -> LineTag:
    """Parse ``"5#0077f9"`` into a :class:`LineTag`.

    Anything after the six hash characters is ignored; models often echo
    the rest of the tagged line back.  The hash itself is never extended.

    Raises
    ------
    ParseError
        If *text* is not a valid reference or the line number is 0.
    """
    match = _TAG_PATTERN.match(text)
    if not match:
        raise ParseError(
            f"Invalid line reference {text!r}. "
            f'Expected format "LINE#HASH" (e.g. "5#0077f9").'
        )

    line = int(match.group(1))
    if line < 1:
        raise ParseError(f"Line number must be >= 1, got {line} in {text!r}")

    return LineTag(line=line, hash=match.group(2))
