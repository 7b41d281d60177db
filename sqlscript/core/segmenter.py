"""Statement segmentation.

The segmenter walks the token stream of a scan range and decides where one
script element ends. It knows about:

- statement delimiters, including dialect line delimiters (``/``, ``GO``) and
  delimiters redefined with ``DELIMITER``
- blocks (brackets, ``DECLARE``/``BEGIN``/``END``, ``$$`` toggles) inside which
  delimiters do not end a statement
- blank lines as delimiters, when enabled
- client-side control commands, returned as standalone elements

A scan never raises for malformed SQL; unbalanced blocks and unterminated
quotes degrade to a best-effort statement.
"""

import logging
from typing import TYPE_CHECKING, Optional, Union

from mypy_extensions import mypyc_attr

from sqlscript.core.blocks import BlockTracker
from sqlscript.core.buffer import TextBuffer
from sqlscript.core.commands import get_command_registry
from sqlscript.core.config import ParseConfig
from sqlscript.core.elements import ControlCommand, ScriptElement, Statement
from sqlscript.core.lexer import DELIMITER_COMMAND_ID, ScriptTokenizer
from sqlscript.core.parameters import ParameterExtractor
from sqlscript.core.tokens import BLOCK_TOKEN_KINDS, ControlToken, Token, TokenKind
from sqlscript.exceptions import SQLScriptError
from sqlscript.utils.logging import get_logger, log_with_context
from sqlscript.utils.text import count_line_feeds, fix_line_feeds

if TYPE_CHECKING:
    from sqlscript.core.commands import CommandRegistry
    from sqlscript.protocols import TokenSource

__all__ = ("StatementSegmenter", "parse_all", "parse_next")

logger = get_logger("sqlscript.core.segmenter")


def _as_buffer(text: Union[TextBuffer, str]) -> TextBuffer:
    return TextBuffer(text) if isinstance(text, str) else text


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementSegmenter:
    """Split script text into statements and control commands.

    Example:
        >>> segmenter = StatementSegmenter()
        >>> [element.text for element in segmenter.parse_all("SELECT 1; SELECT 2;")]
        ['SELECT 1', 'SELECT 2']
    """

    __slots__ = ("_commands", "_config", "_tokenizer")

    def __init__(
        self,
        config: Optional[ParseConfig] = None,
        tokenizer: "Optional[TokenSource]" = None,
        command_registry: "Optional[CommandRegistry]" = None,
    ) -> None:
        self._config = config or (tokenizer.config if tokenizer is not None else ParseConfig())
        self._tokenizer: TokenSource = tokenizer or ScriptTokenizer(self._config)
        self._commands = command_registry or get_command_registry()

    @property
    def config(self) -> ParseConfig:
        return self._config

    @property
    def tokenizer(self) -> "TokenSource":
        return self._tokenizer

    def parse_next(
        self,
        buffer: Union[TextBuffer, str],
        scan_start: int,
        scan_end: int,
        cursor_offset: int,
        batch_mode: bool = False,
        keep_delimiters: bool = False,
    ) -> Optional[ScriptElement]:
        """Return the element that ends at or after ``cursor_offset``.

        Args:
            buffer: Script text or buffer.
            scan_start: Absolute offset where scanning starts.
            scan_end: Absolute offset where scanning stops.
            cursor_offset: Delimiters before this offset do not end the element.
            batch_mode: Return control commands met anywhere, not only under the cursor.
            keep_delimiters: Keep the default delimiter at the end of the statement text.

        Returns:
            The element, or None when the range is empty, lies outside the buffer, or holds
            nothing but whitespace and comments.
        """
        buffer = _as_buffer(buffer)
        try:
            return self._parse_element(buffer, scan_start, scan_end, cursor_offset, batch_mode, keep_delimiters)
        except SQLScriptError as exc:
            logger.warning("Can't extract script element at offset %d: %s", scan_start, exc)
            return None

    def parse_all(
        self,
        buffer: Union[TextBuffer, str],
        start_offset: int = 0,
        length: Optional[int] = None,
        batch_mode: bool = True,
        keep_delimiters: bool = False,
        extract_parameters: bool = False,
    ) -> "list[ScriptElement]":
        """Split ``[start_offset, start_offset + length)`` into consecutive elements.

        The scans share one evaluation session, so a ``DELIMITER`` line applies to
        the rest of the batch and is forgotten once the batch is done.
        """
        buffer = _as_buffer(buffer)
        if length is None:
            length = len(buffer) - start_offset
        end_offset = start_offset + length
        elements: list[ScriptElement] = []

        with self._tokenizer.evaluation_session():
            offset = start_offset
            while offset < end_offset:
                element = self.parse_next(buffer, offset, end_offset, offset, batch_mode, keep_delimiters)
                if element is None:
                    break
                if element.end_offset <= offset:
                    logger.warning("Script element at offset %d does not advance the scan, stopping", offset)
                    break
                elements.append(element)
                offset = element.end_offset

        if extract_parameters and self._config.parameters_enabled:
            extractor = ParameterExtractor(self._config, self._tokenizer)
            for element in elements:
                if isinstance(element, Statement):
                    element.parameters = extractor.extract(buffer, element.offset, element.length)

        log_with_context(
            logger,
            logging.DEBUG,
            "script.split",
            dialect=self._config.dialect.name,
            characters=length,
            elements=len(elements),
        )
        return elements

    def _parse_element(  # noqa: C901, PLR0912, PLR0915
        self,
        buffer: TextBuffer,
        scan_start: int,
        scan_end: int,
        cursor_offset: int,
        batch_mode: bool,
        keep_delimiters: bool,
    ) -> Optional[ScriptElement]:
        length = scan_end - scan_start
        if scan_start < 0 or length <= 0 or length > len(buffer):
            return None

        config = self._config
        dialect = config.dialect
        tokenizer = self._tokenizer
        tokenizer.set_range(buffer, scan_start, length)

        blocks = BlockTracker()
        statement_start = scan_start
        has_content = False
        last_token_line_feeds = 0
        previous_kind = TokenKind.UNKNOWN
        last_keyword: Optional[str] = None

        while True:
            token = tokenizer.next_token()
            token_offset = token.offset
            token_length = token.length
            kind = token.kind
            if token_offset < scan_start:
                return None
            try:
                is_delimiter = kind is TokenKind.DELIMITER
                is_control = False
                delimiter_text: Optional[str] = None

                if is_delimiter:
                    delimiter_text = self._token_text(buffer, token)
                elif config.blank_line_is_delimiter and token.is_whitespace:
                    line_feeds = count_line_feeds(self._token_text(buffer, token) or "")
                    is_delimiter = last_token_line_feeds + line_feeds >= 2
                last_token_line_feeds = 0

                if token_length == 1:
                    char = self._token_text(buffer, token)
                    if char:
                        blocks.bracket(char)

                kind = BlockTracker.reclassify(kind, previous_kind)
                if kind is TokenKind.BLOCK_HEADER:
                    blocks.open_header()
                elif kind is TokenKind.BLOCK_TOGGLE:
                    blocks.toggle(self._token_text(buffer, token) or "")
                elif kind is TokenKind.BLOCK_BEGIN:
                    blocks.begin()
                elif kind is TokenKind.BLOCK_END and blocks.is_open():
                    blocks.end()
                elif is_delimiter and blocks.is_open():
                    continue
                elif kind in {TokenKind.SET_DELIMITER, TokenKind.CONTROL}:
                    is_delimiter = True
                    is_control = True
                elif kind is TokenKind.COMMENT and token_length >= 2:
                    last_token_line_feeds = count_line_feeds(buffer.get(token_offset + token_length - 2, 2))

                if token_length > 0 and not token.is_whitespace and kind in BLOCK_TOKEN_KINDS:
                    last_keyword = self._token_text(buffer, token)

                if is_control:
                    command = self._make_control_command(buffer, token)
                    if not command.is_empty_command and self._commands.get_command_handler(command.command_id) is None:
                        logger.debug("Unknown control command %r treated as script text", command.command_id)
                        is_control = False
                        is_delimiter = False
                    elif not has_content and (batch_mode or token.contains(cursor_offset)):
                        return command

                if has_content and (
                    token.is_eof or (is_delimiter and token_offset >= cursor_offset) or token_offset > scan_end
                ):
                    token_offset = min(token_offset, scan_end, len(buffer))
                    text = buffer.text
                    while statement_start < token_offset and text[statement_start].isspace():
                        statement_start += 1
                    if token_offset <= statement_start:
                        if token.is_eof:
                            return None
                        statement_start = token_offset + token_length
                        continue

                    query_text = fix_line_feeds(buffer.get(statement_start, token_offset - statement_start))
                    if is_delimiter and self._keeps_delimiter(
                        keep_delimiters, blocks.has_blocks, last_keyword, delimiter_text
                    ):
                        query_text += dialect.default_delimiter
                    query_end = token_offset + token_length if kind is TokenKind.DELIMITER else token_offset
                    return Statement(query_text, statement_start, query_end - statement_start)

                if is_delimiter:
                    statement_start = token_offset + token_length
                if token.is_eof:
                    return None
                if not has_content and not token.is_whitespace and not is_control:
                    has_content = kind is not TokenKind.COMMENT or dialect.supports_comment_query
            finally:
                if not token.is_whitespace and not token.is_eof:
                    previous_kind = kind

    def _keeps_delimiter(
        self, keep_delimiters: bool, has_blocks: bool, last_keyword: Optional[str], delimiter_text: Optional[str]
    ) -> bool:
        dialect = self._config.dialect
        if delimiter_text != dialect.default_delimiter:
            return False
        if keep_delimiters:
            return True
        if has_blocks and dialect.is_delimiter_after_query:
            return True
        return (
            dialect.is_delimiter_after_block
            and last_keyword is not None
            and last_keyword.upper() == dialect.block_end_keyword
        )

    def _make_control_command(self, buffer: TextBuffer, token: Token) -> ControlCommand:
        command_id = token.command_id if isinstance(token, ControlToken) else None
        is_redefinition = token.kind is TokenKind.SET_DELIMITER
        if is_redefinition:
            command_id = DELIMITER_COMMAND_ID
        return ControlCommand(
            token.text(buffer).strip(),
            token.offset,
            token.length,
            command_id=command_id,
            is_delimiter_redefinition=is_redefinition,
            prefix=self._config.control_command_prefix,
        )

    @staticmethod
    def _token_text(buffer: TextBuffer, token: Token) -> Optional[str]:
        try:
            return token.text(buffer)
        except SQLScriptError as exc:
            logger.debug("Can't read token %r: %s", token, exc)
            return None


def parse_next(
    text: Union[TextBuffer, str],
    scan_start: int,
    scan_end: int,
    cursor_offset: int,
    batch_mode: bool = False,
    keep_delimiters: bool = False,
    config: Optional[ParseConfig] = None,
) -> Optional[ScriptElement]:
    """Extract the single element around ``cursor_offset``; see :meth:`StatementSegmenter.parse_next`."""
    return StatementSegmenter(config).parse_next(text, scan_start, scan_end, cursor_offset, batch_mode, keep_delimiters)


def parse_all(
    text: Union[TextBuffer, str],
    start_offset: int = 0,
    length: Optional[int] = None,
    batch_mode: bool = True,
    keep_delimiters: bool = False,
    extract_parameters: bool = False,
    config: Optional[ParseConfig] = None,
) -> "list[ScriptElement]":
    """Split a whole script into elements; see :meth:`StatementSegmenter.parse_all`."""
    return StatementSegmenter(config).parse_all(
        text, start_offset, length, batch_mode, keep_delimiters, extract_parameters
    )
