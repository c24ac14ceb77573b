"""
Sequence matcher: locates a block of expected lines inside a haystack.

Model-authored "old text" is often almost right, so matching runs a cascade
of increasingly lenient comparisons and stops at the first pass that finds
the block:

1. exact equality                                   (CONFIDENCE_EXACT)
2. trailing whitespace ignored                      (CONFIDENCE_TRIM_TRAILING)
3. leading and trailing whitespace ignored          (CONFIDENCE_TRIM_BOTH)
4. Unicode dashes / quotes / spaces folded to ASCII (CONFIDENCE_UNICODE_NORMALIZED)
5. fuzzy: best mean per-line Levenshtein similarity, accepted at
   ``>= FUZZY_THRESHOLD``; the confidence is the score itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

CONFIDENCE_EXACT = 1.0
CONFIDENCE_TRIM_TRAILING = 0.99
CONFIDENCE_TRIM_BOTH = 0.98
CONFIDENCE_UNICODE_NORMALIZED = 0.97
FUZZY_THRESHOLD = 0.92

# Code points folded to ASCII before comparison.
_DASHES = "\u2010\u2011\u2012\u2013\u2014\u2015\u2212"
_SINGLE_QUOTES = "\u2018\u2019\u201a\u201b"
_DOUBLE_QUOTES = "\u201c\u201d\u201e\u201f"
_SPACES = (
    "\u00a0\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u202f\u205f\u3000"
)

_UNICODE_TABLE = str.maketrans(
    {
        **{c: "-" for c in _DASHES},
        **{c: "'" for c in _SINGLE_QUOTES},
        **{c: '"' for c in _DOUBLE_QUOTES},
        **{c: " " for c in _SPACES},
    }
)

# The fuzzy pass is a little broader: guillemets and backtick/acute too.
_FUZZY_TABLE = str.maketrans(
    {
        **{c: "-" for c in _DASHES},
        **{c: "'" for c in _SINGLE_QUOTES + "`\u00b4"},
        **{c: '"' for c in _DOUBLE_QUOTES + "\u00ab\u00bb"},
        **{c: " " for c in _SPACES},
    }
)

_INLINE_WS = re.compile(r"[ \t]+")


@dataclass
class SequenceMatch:
    """Result of a sequence search."""
    index: int | None      # 0-indexed start, None if not found
    confidence: float      # 1.0 exact; for a failed search, the best fuzzy score

    @property
    def found(self) -> bool:
        return self.index is not None


# ---------------------------------------------------------------------------
# Normalisation and scoring
# ---------------------------------------------------------------------------

def normalize_unicode(text: str) -> str:
    """Trim and fold typographic punctuation and odd spaces to ASCII."""
    return text.strip().translate(_UNICODE_TABLE)


def normalize_line_for_fuzzy(line: str) -> str:
    """Trim, fold punctuation and collapse runs of spaces/tabs."""
    trimmed = line.strip()
    if not trimmed:
        return ""
    return _INLINE_WS.sub(" ", trimmed.translate(_FUZZY_TABLE))


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between *a* and *b* (two-row dynamic programming)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            curr[j] = min(
                prev[j] + 1,                  # deletion
                curr[j - 1] + 1,              # insertion
                prev[j - 1] + (ca != cb),     # substitution
            )
        prev = curr
    return prev[-1]


def similarity_score(a: str, b: str) -> float:
    """``1 - distance / max_len``; two empty strings are identical."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len


def fuzzy_score_at(lines: Sequence[str], pattern: Sequence[str], i: int) -> float:
    """Mean per-line similarity of *pattern* against *lines* at offset *i*."""
    total = 0.0
    for j, expected in enumerate(pattern):
        total += similarity_score(
            normalize_line_for_fuzzy(lines[i + j]),
            normalize_line_for_fuzzy(expected),
        )
    return total / len(pattern)


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------

def _exact(a: str, b: str) -> bool:
    return a == b


def _trim_trailing(a: str, b: str) -> bool:
    return a.rstrip() == b.rstrip()


def _trim_both(a: str, b: str) -> bool:
    return a.strip() == b.strip()


def _unicode(a: str, b: str) -> bool:
    return normalize_unicode(a) == normalize_unicode(b)


_STRICT_PASSES: list[tuple[str, Callable[[str, str], bool], float]] = [
    ("exact", _exact, CONFIDENCE_EXACT),
    ("trim_trailing", _trim_trailing, CONFIDENCE_TRIM_TRAILING),
    ("trim_both", _trim_both, CONFIDENCE_TRIM_BOTH),
    ("unicode", _unicode, CONFIDENCE_UNICODE_NORMALIZED),
]


def _matches_at(
    lines: Sequence[str],
    pattern: Sequence[str],
    i: int,
    compare: Callable[[str, str], bool],
) -> bool:
    return all(compare(lines[i + j], p) for j, p in enumerate(pattern))


def _cascade(
    lines: Sequence[str],
    pattern: Sequence[str],
    positions: range,
    threshold: float,
    allow_fuzzy: bool,
) -> SequenceMatch:
    for name, compare, confidence in _STRICT_PASSES:
        for i in positions:
            if _matches_at(lines, pattern, i, compare):
                logger.debug(
                    "[HashEdit] Sequence matched at %d via %s pass", i, name
                )
                return SequenceMatch(index=i, confidence=confidence)

    best_index: int | None = None
    best_score = 0.0
    for i in positions:
        score = fuzzy_score_at(lines, pattern, i)
        if score > best_score:
            best_index, best_score = i, score

    if allow_fuzzy and best_index is not None and best_score >= threshold:
        logger.debug(
            "[HashEdit] Sequence matched at %d via fuzzy pass (%.3f)",
            best_index, best_score,
        )
        return SequenceMatch(index=best_index, confidence=best_score)

    return SequenceMatch(index=None, confidence=best_score)


def seek_sequence(
    lines: Sequence[str],
    pattern: Sequence[str],
    start: int = 0,
    eof: bool = False,
    *,
    fuzzy_threshold: float = FUZZY_THRESHOLD,
    allow_fuzzy: bool = True,
) -> SequenceMatch:
    """Find *pattern* in *lines* at or after *start*.

    Parameters
    ----------
    lines:
        The haystack.
    pattern:
        The block to locate.
    start:
        First candidate index.
    eof:
        Try the end-of-file position (``len(lines) - len(pattern)``) through
        the whole cascade first; fall back to scanning from *start*.
    fuzzy_threshold:
        Minimum mean similarity for the fuzzy pass.
    allow_fuzzy:
        Disable the fuzzy pass entirely when False.

    Returns
    -------
    SequenceMatch
        ``index`` is None when nothing qualified.
    """
    if not pattern:
        return SequenceMatch(index=start, confidence=CONFIDENCE_EXACT)

    if len(pattern) > len(lines):
        return SequenceMatch(index=None, confidence=0.0)

    start = max(start, 0)
    max_start = len(lines) - len(pattern)
    if start > max_start:
        return SequenceMatch(index=None, confidence=0.0)

    best_failed = 0.0
    if eof:
        at_end = _cascade(
            lines, pattern, range(max_start, max_start + 1),
            fuzzy_threshold, allow_fuzzy,
        )
        if at_end.found:
            return at_end
        best_failed = at_end.confidence

    result = _cascade(
        lines, pattern, range(start, max_start + 1),
        fuzzy_threshold, allow_fuzzy,
    )
    if not result.found:
        result.confidence = max(result.confidence, best_failed)
    return result


def find_context_line(
    lines: Sequence[str],
    context: str,
    start: int = 0,
    *,
    fuzzy_threshold: float = FUZZY_THRESHOLD,
    allow_fuzzy: bool = True,
) -> SequenceMatch:
    """Locate a single scope line (e.g. a ``def``/``class`` header)."""
    return seek_sequence(
        lines, [context], start, False,
        fuzzy_threshold=fuzzy_threshold, allow_fuzzy=allow_fuzzy,
    )
