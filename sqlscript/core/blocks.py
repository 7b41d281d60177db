"""Block tracking for the statement segmenter.

Delimiters met while a block is open belong to the block body and never end a
statement. Blocks are bracket pairs, header/body constructs such as
``DECLARE ... BEGIN ... END`` and toggle-quoted bodies such as PostgreSQL
``$$ ... $$``. Unbalanced input is tolerated: a stray close is ignored and an
unclosed open simply keeps the block open until the end of the scan.
"""

from enum import Enum
from typing import Final, Optional

from mypy_extensions import mypyc_attr

from sqlscript.core.tokens import TokenKind
from sqlscript.utils.logging import get_logger

__all__ = ("BlockFrame", "BlockKind", "BlockTracker")

logger = get_logger("sqlscript.core.blocks")

OPENING_BRACKETS: Final = frozenset("({[")
CLOSING_BRACKETS: Final = frozenset(")}]")


class BlockKind(Enum):
    BRACKET = "bracket"
    HEADER = "header"
    BODY = "body"
    TOGGLE = "toggle"


@mypyc_attr(allow_interpreted_subclasses=False)
class BlockFrame:
    """One open block; ``is_header`` stays true until the header's body begins."""

    __slots__ = ("is_header", "kind")

    def __init__(self, kind: BlockKind, is_header: bool = False) -> None:
        self.kind = kind
        self.is_header = is_header

    def __repr__(self) -> str:
        return f"BlockFrame({self.kind.value}, is_header={self.is_header})"


@mypyc_attr(allow_interpreted_subclasses=False)
class BlockTracker:
    """Stack of open block frames for one single-statement scan."""

    __slots__ = ("_frames", "_has_blocks", "_toggle_pattern")

    def __init__(self) -> None:
        self._frames: list[BlockFrame] = []
        self._has_blocks = False
        self._toggle_pattern: Optional[str] = None

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def has_blocks(self) -> bool:
        """Whether a header, body or toggle block was opened during the scan."""
        return self._has_blocks

    @property
    def toggle_pattern(self) -> Optional[str]:
        return self._toggle_pattern

    def push(self, kind: BlockKind, is_header: bool = False) -> BlockFrame:
        frame = BlockFrame(kind, is_header)
        self._frames.append(frame)
        return frame

    def pop(self) -> Optional[BlockFrame]:
        """Remove and return the top frame; no-op on an empty stack."""
        if not self._frames:
            return None
        return self._frames.pop()

    def top(self) -> Optional[BlockFrame]:
        return self._frames[-1] if self._frames else None

    def is_open(self) -> bool:
        return bool(self._frames)

    def bracket(self, char: str) -> None:
        """Track a one-character token that may open or close a bracket pair."""
        if char in OPENING_BRACKETS:
            self.push(BlockKind.BRACKET)
        elif char in CLOSING_BRACKETS:
            self.pop()

    def open_header(self) -> None:
        self.push(BlockKind.HEADER, is_header=True)
        self._has_blocks = True

    def begin(self) -> None:
        """A block body starts: either the body of an open header or a new block."""
        top = self.top()
        if top is not None and top.is_header:
            top.is_header = False
        else:
            self.push(BlockKind.BODY)
        self._has_blocks = True

    def end(self) -> None:
        # END without an open block (e.g. closing CASE) is not a block boundary.
        self.pop()

    def toggle(self, pattern: str) -> None:
        """Open or close a toggle-quoted block.

        Toggles nest one level deep only: a pattern seen while another block is open
        and that does not close the outer toggle is ignored.
        """
        if len(self._frames) == 1 and pattern == self._toggle_pattern:
            self.pop()
            self._toggle_pattern = None
        elif not self._frames and self._toggle_pattern is None:
            self.push(BlockKind.TOGGLE)
            self._toggle_pattern = pattern
        else:
            logger.debug("Block toggle %r inside another block, ignored", pattern)
        self._has_blocks = True

    @staticmethod
    def reclassify(kind: TokenKind, previous_kind: TokenKind) -> TokenKind:
        """Demote a block begin directly following a block end (``END CASE``, ``END LOOP``)."""
        if kind is TokenKind.BLOCK_BEGIN and previous_kind is TokenKind.BLOCK_END:
            return TokenKind.UNKNOWN
        return kind

    def __repr__(self) -> str:
        return f"BlockTracker(frames={self._frames!r}, toggle_pattern={self._toggle_pattern!r})"
