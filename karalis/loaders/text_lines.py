# karalis/loaders/text_lines.py
"""Split a text buffer into logical lines (LF, CRLF and bare CR endings)."""

from __future__ import annotations

import re
from typing import Iterator, List, Tuple, Union

from karalis.errors import EmptyInputError

TextBuffer = Union[bytes, bytearray, memoryview, str]

_LINE_END_BYTES = re.compile(rb"\r\n|\n|\r|\x00")
_LINE_END_STR = re.compile(r"\r\n|\n|\r|\x00")


def split_lines(buf: TextBuffer) -> List[Tuple[int, int]]:
    """
    Find the (offset, length) span of every line in buf.

    Line terminators are not part of a span. Bytes after the last
    terminator form one more span.

    Raises:
        EmptyInputError: buf has zero length
    """
    if buf is None or len(buf) == 0:
        raise EmptyInputError("Input buffer has no lines")

    if isinstance(buf, str):
        pattern = _LINE_END_STR
    else:
        buf = bytes(buf)
        pattern = _LINE_END_BYTES

    spans = []
    start = 0
    for match in pattern.finditer(buf):
        spans.append((start, match.start() - start))
        start = match.end()
    if start < len(buf):
        spans.append((start, len(buf) - start))
    return spans


def decode_text(data: TextBuffer) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", errors="ignore")


def iter_line_text(buf: TextBuffer) -> Iterator[str]:
    """Yield the decoded text of every line span in buf."""
    for offset, length in split_lines(buf):
        yield decode_text(buf[offset:offset + length])
