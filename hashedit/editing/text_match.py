"""
Character-level block matching for unanchored replacements.

A single hunk with no scope marker and no context lines is just "replace
this text with that text".  The old text is first looked up verbatim across
the whole file; only when it is absent do we fall back to scoring every
window of the same line count with the sequence matcher's fuzzy scorer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .seek_sequence import CONFIDENCE_EXACT, FUZZY_THRESHOLD, fuzzy_score_at

logger = logging.getLogger(__name__)


@dataclass
class FuzzyMatch:
    """A located block of text inside the file content."""
    actual_text: str       # text as it appears in the file
    start_index: int       # character offset into the content
    start_line: int        # 1-indexed
    confidence: float


@dataclass
class MatchOutcome:
    """Everything learned while searching for a block.

    ``match`` is set only when the block was found unambiguously.
    ``occurrences`` is the verbatim occurrence count when it exceeds one.
    ``closest`` is the best-scoring window, even when it fell short of the
    threshold.  ``fuzzy_matches`` counts windows tied at the best score.
    """
    match: FuzzyMatch | None = None
    occurrences: int | None = None
    closest: FuzzyMatch | None = None
    fuzzy_matches: int | None = None


def _line_offsets(lines: list[str]) -> list[int]:
    offsets: list[int] = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line) + 1
    return offsets


def find_edit_match(
    content: str,
    old_text: str,
    *,
    allow_fuzzy: bool = True,
    threshold: float = FUZZY_THRESHOLD,
) -> MatchOutcome:
    """Locate *old_text* inside *content*.

    Both arguments are expected to use ``"\\n"`` line endings.
    """
    if not old_text:
        return MatchOutcome()

    occurrences = content.count(old_text)
    if occurrences == 1:
        start = content.index(old_text)
        found = FuzzyMatch(
            actual_text=old_text,
            start_index=start,
            start_line=content.count("\n", 0, start) + 1,
            confidence=CONFIDENCE_EXACT,
        )
        return MatchOutcome(match=found, closest=found)
    if occurrences > 1:
        logger.debug(
            "[HashEdit] Old text occurs %d times; refusing to pick one",
            occurrences,
        )
        return MatchOutcome(occurrences=occurrences)

    content_lines = content.split("\n")
    old_lines = old_text.split("\n")
    window = len(old_lines)
    if window > len(content_lines):
        return MatchOutcome()

    best_index = -1
    best_score = -1.0
    ties = 0
    for i in range(len(content_lines) - window + 1):
        score = fuzzy_score_at(content_lines, old_lines, i)
        if score > best_score:
            best_index, best_score, ties = i, score, 1
        elif score == best_score:
            ties += 1

    offsets = _line_offsets(content_lines)
    closest = FuzzyMatch(
        actual_text="\n".join(content_lines[best_index:best_index + window]),
        start_index=offsets[best_index],
        start_line=best_index + 1,
        confidence=best_score,
    )
    outcome = MatchOutcome(closest=closest)

    if not allow_fuzzy or best_score < threshold:
        logger.debug(
            "[HashEdit] Closest block at line %d scored %.3f (threshold %.2f)",
            closest.start_line, best_score, threshold,
        )
        return outcome

    outcome.fuzzy_matches = ties
    if ties == 1:
        logger.debug(
            "[HashEdit] Fuzzy block match at line %d (%.3f)",
            closest.start_line, best_score,
        )
        outcome.match = closest
    return outcome
