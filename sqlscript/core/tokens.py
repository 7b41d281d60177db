"""Typed tokens produced by the script tokenizer."""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from mypy_extensions import mypyc_attr

if TYPE_CHECKING:
    from sqlscript.core.buffer import TextBuffer

__all__ = ("BLOCK_TOKEN_KINDS", "ControlToken", "Token", "TokenKind")


class TokenKind(Enum):
    """Kinds of tokens recognized by the script tokenizer."""

    WHITESPACE = "WHITESPACE"
    COMMENT = "COMMENT"
    DELIMITER = "DELIMITER"
    BLOCK_BEGIN = "BLOCK_BEGIN"
    BLOCK_END = "BLOCK_END"
    BLOCK_HEADER = "BLOCK_HEADER"
    BLOCK_TOGGLE = "BLOCK_TOGGLE"
    SET_DELIMITER = "SET_DELIMITER"
    CONTROL = "CONTROL"
    PARAMETER = "PARAMETER"
    UNKNOWN = "UNKNOWN"
    EOF = "EOF"


# Kinds whose text is remembered as the last keyword of a statement.
BLOCK_TOKEN_KINDS = frozenset({
    TokenKind.BLOCK_BEGIN,
    TokenKind.BLOCK_END,
    TokenKind.BLOCK_TOGGLE,
    TokenKind.BLOCK_HEADER,
    TokenKind.UNKNOWN,
})


@mypyc_attr(allow_interpreted_subclasses=True)
class Token:
    """Token addressed by absolute offset and length; text is resolved lazily."""

    __slots__ = ("kind", "length", "offset")

    def __init__(self, kind: TokenKind, offset: int, length: int) -> None:
        self.kind = kind
        self.offset = offset
        self.length = length

    @property
    def end_offset(self) -> int:
        return self.offset + self.length

    @property
    def is_eof(self) -> bool:
        return self.kind is TokenKind.EOF

    @property
    def is_whitespace(self) -> bool:
        return self.kind is TokenKind.WHITESPACE

    def contains(self, offset: int) -> bool:
        return self.offset <= offset < self.offset + self.length

    def text(self, buffer: "TextBuffer") -> str:
        """Resolve the token text from ``buffer``.

        Raises:
            BufferAccessError: If the token span lies outside the buffer.
        """
        return buffer.get(self.offset, self.length)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (self.kind, self.offset, self.length) == (other.kind, other.offset, other.length)

    def __hash__(self) -> int:
        return hash((self.kind, self.offset, self.length))

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.offset}, {self.length})"


@mypyc_attr(allow_interpreted_subclasses=True)
class ControlToken(Token):
    """Client-side directive token carrying the id of the command it invokes."""

    __slots__ = ("command_id",)

    def __init__(self, kind: TokenKind, offset: int, length: int, command_id: Optional[str] = None) -> None:
        super().__init__(kind, offset, length)
        self.command_id = command_id

    def __repr__(self) -> str:
        return f"ControlToken({self.kind.value}, {self.offset}, {self.length}, command_id={self.command_id!r})"
