"""Read-only character buffer with checked offset access."""

from mypy_extensions import mypyc_attr

from sqlscript.exceptions import BufferAccessError

__all__ = ("TextBuffer",)


@mypyc_attr(allow_interpreted_subclasses=False)
class TextBuffer:
    """Script text addressed by absolute offsets.

    Every read is bounds-checked and raises :class:`BufferAccessError` instead of
    silently truncating, so callers can skip the offending token or match.
    """

    __slots__ = ("_text",)

    def __init__(self, text: str) -> None:
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"TextBuffer(length={len(self._text)})"

    def get(self, offset: int, length: int) -> str:
        """Return ``length`` characters starting at ``offset``.

        Raises:
            BufferAccessError: If the requested span is not inside the buffer.
        """
        if offset < 0 or length < 0 or offset + length > len(self._text):
            raise BufferAccessError(offset, length, len(self._text))
        return self._text[offset : offset + length]

    def char_at(self, offset: int) -> str:
        if offset < 0 or offset >= len(self._text):
            raise BufferAccessError(offset, 1, len(self._text))
        return self._text[offset]

    def line_of_offset(self, offset: int) -> int:
        """Zero-based line number containing ``offset``."""
        if offset < 0 or offset > len(self._text):
            raise BufferAccessError(offset, 0, len(self._text))
        return self._text.count("\n", 0, offset)

    def line_offset(self, line: int) -> int:
        """Offset of the first character of ``line``."""
        if line < 0:
            raise BufferAccessError(line, 0, len(self._text))
        offset = 0
        for _ in range(line):
            newline = self._text.find("\n", offset)
            if newline < 0:
                raise BufferAccessError(offset, 0, len(self._text))
            offset = newline + 1
        return offset

    def line_text(self, line: int) -> str:
        """Text of ``line`` without its line delimiter."""
        start = self.line_offset(line)
        end = self._text.find("\n", start)
        if end < 0:
            end = len(self._text)
        return self._text[start:end].rstrip("\r")

    def is_empty_line(self, line: int) -> bool:
        return not self.line_text(line).strip()
