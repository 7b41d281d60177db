"""Editor-style access to the statements of one script document.

:class:`ScriptDocument` binds a script text to a parse configuration and adds
the cursor helpers an editor needs on top of the segmenter: the statement under
the cursor, the next or previous statement, and the statement described by a
selection.
"""

from typing import TYPE_CHECKING, Optional

from mypy_extensions import mypyc_attr

from sqlscript.core.buffer import TextBuffer
from sqlscript.core.config import ParseConfig
from sqlscript.core.elements import ControlCommand, ScriptElement, Statement
from sqlscript.core.lexer import ScriptTokenizer
from sqlscript.core.parameters import ParameterExtractor
from sqlscript.core.segmenter import StatementSegmenter
from sqlscript.exceptions import BufferAccessError
from sqlscript.utils.logging import get_logger
from sqlscript.utils.text import fix_line_feeds, is_blank, trim_query_statement

if TYPE_CHECKING:
    from sqlscript.core.commands import CommandRegistry
    from sqlscript.core.elements import Parameter

__all__ = ("ScriptDocument",)

logger = get_logger("sqlscript.core.document")


@mypyc_attr(allow_interpreted_subclasses=False)
class ScriptDocument:
    """Script text plus the parse configuration used to split it."""

    __slots__ = ("_buffer", "_config", "_extractor", "_segmenter")

    def __init__(
        self, text: str, config: Optional[ParseConfig] = None, command_registry: "Optional[CommandRegistry]" = None
    ) -> None:
        self._buffer = TextBuffer(text)
        self._config = config or ParseConfig()
        tokenizer = ScriptTokenizer(self._config)
        self._segmenter = StatementSegmenter(self._config, tokenizer, command_registry)
        self._extractor = ParameterExtractor(self._config, tokenizer)

    @property
    def text(self) -> str:
        return self._buffer.text

    @property
    def buffer(self) -> TextBuffer:
        return self._buffer

    @property
    def config(self) -> ParseConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        return f"ScriptDocument(length={len(self._buffer)}, dialect={self._config.dialect.name!r})"

    def parse_next(
        self,
        scan_start: int,
        scan_end: int,
        cursor_offset: int,
        batch_mode: bool = False,
        keep_delimiters: bool = False,
    ) -> Optional[ScriptElement]:
        return self._segmenter.parse_next(
            self._buffer, scan_start, scan_end, cursor_offset, batch_mode, keep_delimiters
        )

    def parse_all(
        self,
        start_offset: int = 0,
        length: Optional[int] = None,
        batch_mode: bool = True,
        keep_delimiters: bool = False,
        extract_parameters: bool = False,
    ) -> "list[ScriptElement]":
        return self._segmenter.parse_all(
            self._buffer, start_offset, length, batch_mode, keep_delimiters, extract_parameters
        )

    def extract_parameters(self, statement_offset: int, statement_length: int) -> "list[Parameter]":
        return self._extractor.extract(self._buffer, statement_offset, statement_length)

    def has_active_query(self, selection_offset: int, selection_length: int = 0) -> bool:
        """Whether the selection, or the cursor line when nothing is selected, holds any text."""
        buffer = self._buffer
        try:
            if selection_length > 0:
                return not is_blank(buffer.get(selection_offset, selection_length))
            if 0 <= selection_offset < len(buffer):
                return not buffer.is_empty_line(buffer.line_of_offset(selection_offset))
        except BufferAccessError as exc:
            logger.debug("Can't inspect selection at offset %d: %s", selection_offset, exc)
        return False

    def extract_active_query(self, selection_offset: int, selection_length: int = 0) -> Optional[ScriptElement]:
        """Return the element the user means to execute.

        A non-empty selection is taken verbatim (minus a trailing delimiter) unless it
        starts with a control command; otherwise the element under the cursor is used.
        Parameters are attached to the returned statement.
        """
        config = self._config
        dialect = config.dialect
        element: Optional[ScriptElement] = None

        selected = ""
        if selection_length > 0:
            try:
                selected = self._buffer.get(selection_offset, selection_length)
            except BufferAccessError as exc:
                logger.warning("Invalid selection: %s", exc)
                return None
        if config.remove_trailing_delimiter:
            selected = trim_query_statement(selected, dialect, not dialect.is_delimiter_after_query)

        if selected.strip():
            parsed = self.parse_next(selection_offset, selection_offset + selection_length, selection_offset)
            if isinstance(parsed, ControlCommand):
                element = parsed
            else:
                element = Statement(fix_line_feeds(selected), selection_offset, selection_length)
        elif selection_offset >= 0:
            element = self.extract_query_at_pos(selection_offset)

        if element is None or not element.text:
            return None
        if isinstance(element, Statement) and config.parameters_enabled:
            element.parameters = self.extract_parameters(element.offset, element.length)
        return element

    def extract_query_at_pos(self, position: int) -> Optional[ScriptElement]:
        """Return the element under ``position``.

        The scan starts after the last delimiter on the cursor line that is followed
        by text before the cursor, otherwise at the start of the document (or, with
        blank-line delimiters, at the nearest blank line above). Delimiters before the
        start of the cursor line never end the element.
        """
        buffer = self._buffer
        doc_length = len(buffer)
        if doc_length == 0:
            return None
        position = min(max(position, 0), doc_length)
        last_position = doc_length - 1 if position >= doc_length else position
        use_blank_lines = self._config.blank_line_is_delimiter

        start_offset = 0
        cursor_offset = position
        try:
            line = buffer.line_of_offset(position)
            if use_blank_lines and buffer.is_empty_line(line):
                if line == 0:
                    return None
                line -= 1
                if buffer.is_empty_line(line):
                    return None
            line_start = buffer.line_offset(line)

            start_offset = self._delimiter_end_on_line(line, last_position)
            if start_offset < 0:
                first_line = line
                if use_blank_lines:
                    while first_line > 0 and not buffer.is_empty_line(first_line):
                        first_line -= 1
                else:
                    first_line = 0
                start_offset = buffer.line_offset(first_line)
            cursor_offset = line_start
        except BufferAccessError as exc:
            logger.debug("Can't locate the line at offset %d: %s", position, exc)

        return self.parse_next(start_offset, doc_length, cursor_offset)

    def extract_next_query(self, position: int, forward: bool = True) -> Optional[ScriptElement]:
        """Return the element after (or before) the one under ``position``."""
        current = self.extract_query_at_pos(position)
        if current is None:
            return None
        text = self._buffer.text
        doc_length = len(text)
        delimiter_chars = "".join(d for d in self._config.dialect.statement_delimiters if not d[0].isalnum())

        if forward:
            offset = current.end_offset
            while offset < doc_length and (text[offset].isspace() or text[offset] in delimiter_chars):
                offset += 1
        else:
            offset = current.offset - 1
            while offset >= 0 and text[offset].isspace():
                offset -= 1
        if offset <= 0 or offset >= doc_length:
            return None
        return self.extract_query_at_pos(offset)

    def _delimiter_end_on_line(self, line: int, last_position: int) -> int:
        """Offset just past a delimiter on ``line`` followed by text up to the cursor, or -1."""
        buffer = self._buffer
        text = buffer.text
        line_text = buffer.line_text(line)
        line_start = buffer.line_offset(line)
        for delimiter in self._config.dialect.statement_delimiters:
            if delimiter[0].isalnum():
                continue
            index = line_text.find(delimiter)
            if index < 0:
                continue
            delimiter_end = line_start + index + len(delimiter)
            if delimiter_end < len(text) and text[delimiter_end : last_position + 1].strip():
                return delimiter_end
        return -1
