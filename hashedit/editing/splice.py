"""
Position-resolved line edits, spliced into an immutable source in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


@dataclass
class Replacement:
    """Replace ``length`` lines at ``start_index`` (0-indexed) with ``new_lines``."""
    start_index: int
    length: int
    new_lines: list[str] = field(default_factory=list)

    @property
    def end_index(self) -> int:
        return self.start_index + self.length

    @property
    def is_insertion(self) -> bool:
        return self.length == 0


def order_replacements(replacements: Sequence[Replacement]) -> list[Replacement]:
    """Sort by start; at equal starts insertions come before replacements.

    The sort is stable, so insertions at the same point keep their order.
    """
    return sorted(
        replacements,
        key=lambda r: (r.start_index, 0 if r.is_insertion else 1),
    )


def find_overlap(
    replacements: Sequence[Replacement],
) -> tuple[Replacement, Replacement] | None:
    """Return the first pair of overlapping replacements in sorted order."""
    previous: Replacement | None = None
    for rep in replacements:
        if previous is not None and rep.start_index < previous.end_index:
            return previous, rep
        if previous is None or rep.end_index >= previous.end_index:
            previous = rep
    return None


def splice_lines(
    lines: Sequence[str],
    replacements: Sequence[Replacement],
) -> list[str]:
    """Build the edited line list from sorted, non-overlapping *replacements*."""
    result: list[str] = []
    pos = 0
    for rep in replacements:
        result.extend(lines[pos:rep.start_index])
        result.extend(rep.new_lines)
        pos = max(pos, rep.end_index)
    result.extend(lines[pos:])
    return result
