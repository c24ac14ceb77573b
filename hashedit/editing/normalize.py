"""Line-ending, BOM and indentation helpers shared by the edit paths."""

from __future__ import annotations

from typing import Iterable, Iterator

BOM = "\ufeff"


def strip_bom(text: str) -> tuple[str, str]:
    """Return ``(bom, text_without_bom)``; *bom* is ``""`` when absent."""
    if text.startswith(BOM):
        return BOM, text[len(BOM):]
    return "", text


def detect_line_ending(text: str) -> str:
    """Return ``"\\r\\n"`` if the first line break is CRLF, else ``"\\n"``."""
    lf = text.find("\n")
    if lf > 0 and text[lf - 1] == "\r":
        return "\r\n"
    return "\n"


def normalize_to_lf(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def restore_line_endings(text: str, ending: str) -> str:
    if ending == "\r\n":
        return text.replace("\n", "\r\n")
    return text


def _leading_ws(line: str) -> str:
    return line[:len(line) - len(line.lstrip(" \t"))]


def _min_indent(text: str) -> str | None:
    """Shortest leading whitespace over the non-blank lines of *text*."""
    indents = [_leading_ws(line) for line in text.split("\n") if line.strip()]
    if not indents:
        return None
    return min(indents, key=len)


def adjust_indentation(old_text: str, actual_text: str, new_text: str) -> str:
    """Re-base *new_text* onto the indentation found in the file.

    *old_text* is what the caller expected, *actual_text* what a fuzzy match
    located.  If the two differ only by a uniform indentation shift, the same
    shift is applied to every non-blank line of *new_text*.
    """
    expected = _min_indent(old_text)
    actual = _min_indent(actual_text)
    if expected is None or actual is None or expected == actual:
        return new_text

    lines = new_text.split("\n")
    if actual.startswith(expected):
        extra = actual[len(expected):]
        lines = [extra + line if line.strip() else line for line in lines]
    elif expected.startswith(actual):
        surplus = len(expected) - len(actual)
        lines = [
            line[min(surplus, len(_leading_ws(line))):] for line in lines
        ]
    else:
        # mixed tabs and spaces: swap the prefix where it is present
        lines = [
            actual + line[len(expected):] if line.startswith(expected) else line
            for line in lines
        ]
    return "\n".join(lines)


def _split_cr(line: str, terminated: bool) -> list[str]:
    if terminated and line.endswith("\r"):
        line = line[:-1]
    return line.split("\r")


def iter_lf_lines(lines: Iterable[str]) -> Iterator[str]:
    """Re-split lines produced by ``str.split("\\n")`` as LF-normalised text.

    Drops a leading BOM, then yields exactly what
    ``normalize_to_lf(text).split("\\n")`` would give for the BOM-less text,
    without holding the whole text in memory.
    """
    previous: str | None = None
    for line in lines:
        if previous is None:
            # first line
            _, line = strip_bom(line)
            previous = line
            continue
        yield from _split_cr(previous, terminated=True)
        previous = line
    if previous is not None:
        yield from _split_cr(previous, terminated=False)
