"""Text helpers shared by the segmenter and the document facade."""

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlscript.core.dialects import DialectCapabilities

__all__ = (
    "count_line_feeds",
    "fix_line_feeds",
    "is_blank",
    "trim_query_statement",
)

_LINE_BREAK_RE = re.compile(r"\r\n?")


def fix_line_feeds(text: str) -> str:
    """Normalize ``\\r\\n`` and bare ``\\r`` line endings to ``\\n``."""
    if "\r" not in text:
        return text
    return _LINE_BREAK_RE.sub("\n", text)


def count_line_feeds(text: str) -> int:
    return text.count("\n")


def is_blank(text: "str | None") -> bool:
    return not text or not text.strip()


def trim_query_statement(text: str, dialect: "DialectCapabilities", trim_delimiter: bool = True) -> str:
    """Strip surrounding whitespace and a trailing statement delimiter.

    A trailing delimiter is kept when ``trim_delimiter`` is false, or when it follows the
    block-end keyword of a dialect that places delimiters after blocks.

    Args:
        text: Selected statement text.
        dialect: Dialect supplying the delimiters.
        trim_delimiter: Whether a trailing delimiter may be removed at all.

    Returns:
        The trimmed statement text.
    """
    text = text.strip()
    if not trim_delimiter:
        return text
    for delimiter in dialect.statement_delimiters:
        if len(text) <= len(delimiter) or not text.upper().endswith(delimiter.upper()):
            continue
        head = text[: -len(delimiter)]
        if delimiter[0].isalnum() and not head[-1].isspace():
            continue
        if dialect.is_delimiter_after_block and head.rstrip().upper().endswith(dialect.block_end_keyword):
            return text
        return head.rstrip()
    return text
