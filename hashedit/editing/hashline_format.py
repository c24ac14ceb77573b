"""
Hashline formatter: renders content as ``{line}#{hash}|{content}`` listings.

The streaming variants yield the same text in bounded chunks; joining the
chunks with ``"\\n"`` is byte-identical to :func:`format_hash_lines`.
"""

from __future__ import annotations

import codecs
from typing import Iterable, Iterator

from .errors import ParseError
from .line_hash import CONTENT_SEPARATOR, LineTag, compute_line_hash, parse_tag

DEFAULT_MAX_CHUNK_LINES = 200
DEFAULT_MAX_CHUNK_BYTES = 64 * 1024


def format_hash_line(line: int, content: str) -> str:
    """Return ``"{line}#{hash}|{content}"``."""
    return f"{line}#{compute_line_hash(line, content)}{CONTENT_SEPARATOR}{content}"


def format_hash_lines(content: str, start_line: int = 1) -> str:
    """Tag every line of *content*, numbering from *start_line*.

    Lines are split on ``"\\n"`` exactly, so a trailing newline yields a
    final tagged empty line and empty content yields a single one.
    """
    return "\n".join(
        format_hash_line(num, text)
        for num, text in enumerate(content.split("\n"), start=start_line)
    )


def parse_hash_line(text: str) -> tuple[LineTag, str]:
    """Split a formatted line back into its tag and content."""
    sep = text.find(CONTENT_SEPARATOR)
    if sep == -1:
        raise ParseError(f"Missing '{CONTENT_SEPARATOR}' separator in {text!r}")
    return parse_tag(text[:sep]), text[sep + 1:]


def stream_hash_lines_from_lines(
    lines: Iterable[str],
    *,
    start_line: int = 1,
    max_chunk_lines: int = DEFAULT_MAX_CHUNK_LINES,
    max_chunk_bytes: int = DEFAULT_MAX_CHUNK_BYTES,
) -> Iterator[str]:
    """Yield tagged chunks for already-split *lines*.

    *lines* must follow ``str.split("\\n")`` semantics, i.e. a file ending in
    a newline is represented with a trailing ``""`` element.  Each chunk
    holds at most *max_chunk_lines* lines and, unless it is a single line,
    at most *max_chunk_bytes* UTF-8 bytes.
    """
    if max_chunk_lines < 1:
        raise ValueError("max_chunk_lines must be >= 1")

    group: list[str] = []
    size = 0
    num = start_line

    for text in lines:
        tagged = format_hash_line(num, text)
        num += 1
        tagged_size = len(tagged.encode("utf-8"))

        # +1 for the newline that joins it to the previous line
        if group and size + 1 + tagged_size > max_chunk_bytes:
            yield "\n".join(group)
            group, size = [], 0

        size += tagged_size + (1 if group else 0)
        group.append(tagged)

        if len(group) >= max_chunk_lines:
            yield "\n".join(group)
            group, size = [], 0

    if num == start_line:
        # "".split("\n") == [""]
        group.append(format_hash_line(num, ""))

    if group:
        yield "\n".join(group)


def stream_hash_lines_from_utf8(
    chunks: Iterable[bytes],
    *,
    start_line: int = 1,
    max_chunk_lines: int = DEFAULT_MAX_CHUNK_LINES,
    max_chunk_bytes: int = DEFAULT_MAX_CHUNK_BYTES,
) -> Iterator[str]:
    """Yield tagged chunks for UTF-8 bytes arriving in arbitrary pieces.

    Chunk boundaries may fall anywhere, including inside a multi-byte
    character.
    """
    yield from stream_hash_lines_from_lines(
        split_utf8_lines(chunks),
        start_line=start_line,
        max_chunk_lines=max_chunk_lines,
        max_chunk_bytes=max_chunk_bytes,
    )


def split_utf8_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Decode byte chunks and yield lines with ``str.split("\\n")`` semantics."""
    decoder = codecs.getincrementaldecoder("utf-8")()
    pending = ""
    for chunk in chunks:
        if not chunk:
            continue
        pending += decoder.decode(chunk)
        *complete, pending = pending.split("\n")
        yield from complete
    pending += decoder.decode(b"", final=True)
    *complete, pending = pending.split("\n")
    yield from complete
    # the segment after the last newline is always a line, possibly empty
    yield pending
