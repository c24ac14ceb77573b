"""
Diff display: summarises an edit as a compact numbered diff.

The compact form is what gets shown back to a model after an edit::

    -2|bbb
    +2|BBB
     3|ccc

Line numbers refer to the old content for removals and the new content
otherwise.  A plain ``difflib`` unified diff is also available for humans.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass

DEFAULT_CONTEXT_LINES = 4


@dataclass
class DiffResult:
    """Rendered diff plus the first line (1-indexed, in *after*) that differs."""
    diff: str
    first_changed_line: int | None = None


def render_diff(
    before: str,
    after: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> DiffResult:
    """Render a compact numbered diff of *before* → *after*.

    Returns an empty diff and ``first_changed_line=None`` when the inputs
    are identical.  When only trailing lines are deleted,
    ``first_changed_line`` is one past the last line of *after*.
    """
    if before == after:
        return DiffResult(diff="", first_changed_line=None)

    old_lines = before.split("\n")
    new_lines = after.split("\n")
    width = len(str(max(len(old_lines), len(new_lines))))

    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    first_changed: int | None = None
    for tag, _i1, _i2, j1, _j2 in matcher.get_opcodes():
        if tag != "equal":
            first_changed = j1 + 1
            break

    out: list[str] = []
    for group_index, group in enumerate(matcher.get_grouped_opcodes(context_lines)):
        if group_index:
            out.append(f" {' ' * width} ...")
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for offset, text in enumerate(new_lines[j1:j2]):
                    out.append(f" {j1 + offset + 1:>{width}}|{text}")
                continue
            if tag in ("replace", "delete"):
                for offset, text in enumerate(old_lines[i1:i2]):
                    out.append(f"-{i1 + offset + 1:>{width}}|{text}")
            if tag in ("replace", "insert"):
                for offset, text in enumerate(new_lines[j1:j2]):
                    out.append(f"+{j1 + offset + 1:>{width}}|{text}")

    return DiffResult(diff="\n".join(out), first_changed_line=first_changed)


def generate_unified_diff(before: str, after: str, path: str = "file") -> str | None:
    """Return a standard unified diff, or None if the content is unchanged."""
    if before == after:
        return None

    diff = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        lineterm="",
    )
    diff_text = "\n".join(line.rstrip("\n") for line in diff)
    return diff_text if diff_text.strip() else None


def format_colored_diff(diff_text: str) -> str:
    """Add ANSI colors to a unified or compact diff string.

    Green for additions (+), red for deletions (-), cyan for @@ hunks,
    dim for the compact gap marker.
    """
    colored: list[str] = []
    for line in diff_text.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            colored.append(f"\033[1m{line}\033[0m")  # bold
        elif line.startswith("@@"):
            colored.append(f"\033[36m{line}\033[0m")  # cyan
        elif line.startswith("+"):
            colored.append(f"\033[32m{line}\033[0m")  # green
        elif line.startswith("-"):
            colored.append(f"\033[31m{line}\033[0m")  # red
        elif line.strip() == "...":
            colored.append(f"\033[2m{line}\033[0m")  # dim
        else:
            colored.append(line)
    return "\n".join(colored)
