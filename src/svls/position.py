"""Byte offset to line/column mapping.

Offsets handed out by the parser count bytes of the UTF-8 encoded buffer, so
both helpers scan the encoded text rather than the ``str``. Lines and columns
are 0-indexed, as the LSP expects. Columns stay in UTF-8 bytes and are not
converted to the position encoding the client negotiates, so they only line up
with UTF-16 columns on ASCII lines.
"""

from __future__ import annotations

_NEWLINE = ord("\n")


def _encoded(text: str | bytes) -> bytes:
    if isinstance(text, bytes):
        return text
    return text.encode("utf-8")


def offset_to_line_col(text: str | bytes, offset: int) -> tuple[int, int]:
    data = _encoded(text)
    line = 0
    col = 0
    for pos in range(offset):
        # Past the end of the buffer each step still counts as one column.
        if pos < len(data) and data[pos] == _NEWLINE:
            line += 1
            col = 0
        else:
            col += 1
    return line, col


def line_end(text: str | bytes, offset: int) -> int:
    data = _encoded(text)
    pos = data.find(b"\n", max(offset, 0))
    if pos < 0:
        return max(len(data), offset)
    return pos
