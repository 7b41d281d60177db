"""Pull-based script tokenizer.

The tokenizer scans a restricted range of a :class:`TextBuffer` and hands out one
typed token per :meth:`ScriptTokenizer.next_token` call, finishing with an EOF
token that it keeps returning once the range is exhausted. Restarting means
calling :meth:`ScriptTokenizer.set_range` again.

Rule order (first match wins): whitespace, active custom delimiter, comments,
line-start directives (control commands, ``DELIMITER``), quoted text, dollar
quotes and variables, parameters, statement delimiters, words, numbers and
finally any single character.

Compiled rule sets are cached per dialect and marker configuration.
"""

import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from re import Pattern
from typing import TYPE_CHECKING, Final, Optional, Union

from mypy_extensions import mypyc_attr

from sqlscript.core.buffer import TextBuffer
from sqlscript.core.cache import CacheKey, UnifiedCache
from sqlscript.core.config import ParseConfig
from sqlscript.core.tokens import ControlToken, Token, TokenKind
from sqlscript.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlscript.core.dialects import DialectCapabilities

__all__ = ("DELIMITER_COMMAND_ID", "VARIABLE_PATTERN", "ScriptTokenizer")

logger = get_logger("sqlscript.core.lexer")

DELIMITER_COMMAND_ID: Final = "delimiter"
VARIABLE_PATTERN: Final = re.compile(r"\$\{([a-z0-9_]+)\}", re.IGNORECASE)

# Words that, preceding a creation header keyword, make it open a block.
CREATE_PREFIXES: Final = frozenset({"CREATE", "REPLACE", "EDITIONABLE", "NONEDITIONABLE"})
# Operators that start with the anonymous marker (PostgreSQL JSONB).
MARKER_OPERATOR_SUFFIXES: Final = "?|&"

_WHITESPACE_RE: Final = re.compile(r"\s+")
_WORD_RE: Final = re.compile(r"[^\W\d][\w$#]*")
_NUMBER_RE: Final = re.compile(r"\d+(?:\.\d*)?(?:[eE][+-]?\d+)?")
_DOLLAR_QUOTE_RE: Final = re.compile(r"\$(?:[^\W\d]\w*)?\$")
_DELIMITER_REDEFINITION_RE: Final = re.compile(r"DELIMITER[ \t]+(\S+)", re.IGNORECASE)

DEFAULT_RULE_CACHE_SIZE: Final = 64

_rule_cache: "Optional[UnifiedCache[_LexerRules]]" = None
_cache_lock = threading.Lock()


@mypyc_attr(allow_interpreted_subclasses=False)
class _DelimiterRule:
    __slots__ = ("is_line", "is_word", "pattern", "text")

    def __init__(self, text: str, is_line: bool) -> None:
        self.text = text
        self.is_line = is_line
        self.is_word = text[0].isalnum()
        self.pattern: Optional[Pattern[str]] = (
            re.compile(re.escape(text) + r"(?![\w$#])", re.IGNORECASE) if self.is_word else None
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class _LexerRules:
    """Compiled, dialect-specific parts of the rule set."""

    __slots__ = ("control_re", "delimiters", "named_parameter_re")

    def __init__(self, dialect: "DialectCapabilities", config: ParseConfig) -> None:
        line_delimiters = {d.upper() for d in dialect.line_delimiters}
        self.delimiters = [
            _DelimiterRule(delimiter, delimiter.upper() in line_delimiters)
            for delimiter in sorted(dialect.statement_delimiters, key=len, reverse=True)
        ]
        self.named_parameter_re = re.compile(re.escape(config.named_parameter_prefix) + r"\w+")
        self.control_re = re.compile(re.escape(config.control_command_prefix) + r"([^\W\d][\w-]*)?")


def _get_rule_cache() -> "UnifiedCache[_LexerRules]":
    global _rule_cache
    if _rule_cache is None:
        with _cache_lock:
            if _rule_cache is None:
                _rule_cache = UnifiedCache[_LexerRules](max_size=DEFAULT_RULE_CACHE_SIZE)
    return _rule_cache


def _get_rules(config: ParseConfig) -> _LexerRules:
    dialect = config.dialect
    cache_key = CacheKey((
        "lexer",
        type(dialect).__qualname__,
        dialect.name,
        tuple(dialect.statement_delimiters),
        tuple(sorted(dialect.line_delimiters)),
        config.named_parameter_prefix,
        config.control_command_prefix,
    ))
    cache = _get_rule_cache()
    rules = cache.get(cache_key)
    if rules is None:
        rules = _LexerRules(dialect, config)
        cache.put(cache_key, rules)
        logger.debug("Compiled tokenizer rules for %s dialect: %s", dialect.name, repr(cache.get_stats()))
    return rules


def clear_rule_cache() -> None:
    """Drop all cached rule sets."""
    _get_rule_cache().clear()


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char in "_$#"


@mypyc_attr(allow_interpreted_subclasses=False)
class ScriptTokenizer:
    """Tokenizer over a scan range of a text buffer.

    Scan-scoped state (the delimiter set by a ``DELIMITER`` line) lives for one
    :meth:`set_range` scan, unless an evaluation session is open, in which case it
    survives until the session ends.
    """

    __slots__ = (
        "_buffer",
        "_config",
        "_custom_delimiter",
        "_dialect",
        "_end",
        "_in_evaluation",
        "_last_word",
        "_pos",
        "_rules",
        "_start",
    )

    def __init__(self, config: Optional[ParseConfig] = None) -> None:
        self._config = config or ParseConfig()
        self._dialect = self._config.dialect
        self._rules = _get_rules(self._config)
        self._buffer = TextBuffer("")
        self._start = 0
        self._pos = 0
        self._end = 0
        self._custom_delimiter: Optional[str] = None
        self._in_evaluation = False
        self._last_word: Optional[str] = None

    @property
    def config(self) -> ParseConfig:
        return self._config

    @property
    def dialect(self) -> "DialectCapabilities":
        return self._dialect

    @property
    def buffer(self) -> TextBuffer:
        return self._buffer

    @property
    def custom_delimiter(self) -> Optional[str]:
        """Delimiter set by the last ``DELIMITER`` line, if any."""
        return self._custom_delimiter

    @property
    def in_evaluation(self) -> bool:
        return self._in_evaluation

    def set_range(self, buffer: Union[TextBuffer, str], offset: int, length: int) -> None:
        """Restart scanning at ``offset`` for ``length`` characters.

        Args:
            buffer: Buffer (or raw text) to scan.
            offset: Absolute start offset.
            length: Number of characters to scan; clipped to the buffer end.
        """
        if isinstance(buffer, str):
            buffer = TextBuffer(buffer)
        self._buffer = buffer
        self._start = max(offset, 0)
        self._pos = self._start
        self._end = max(self._start, min(offset + length, len(buffer)))
        self._last_word = None
        if not self._in_evaluation:
            self._custom_delimiter = None

    def start_eval(self) -> None:
        if self._in_evaluation:
            logger.debug("Evaluation session already open")
        self._in_evaluation = True

    def end_eval(self) -> None:
        self._in_evaluation = False
        self._custom_delimiter = None

    @contextmanager
    def evaluation_session(self) -> "Iterator[ScriptTokenizer]":
        """Keep scan-scoped state alive across several scans.

        The session is closed on every exit path, so a delimiter redefined inside
        one batch never leaks into the next.
        """
        self.start_eval()
        try:
            yield self
        finally:
            self.end_eval()

    def tokens(self) -> "Iterator[Token]":
        """Iterate the remaining tokens of the range, EOF included."""
        while True:
            token = self.next_token()
            yield token
            if token.is_eof:
                return

    def next_token(self) -> Token:
        pos = self._pos
        end = self._end
        if pos >= end:
            return Token(TokenKind.EOF, end, 0)
        token = self._scan(self._buffer.text, pos, end)
        self._pos = token.offset + token.length
        return token

    def _scan(self, text: str, pos: int, end: int) -> Token:  # noqa: C901, PLR0911, PLR0912
        char = text[pos]
        dialect = self._dialect
        config = self._config

        if char.isspace():
            match = _WHITESPACE_RE.match(text, pos, end)
            return Token(TokenKind.WHITESPACE, pos, match.end() - pos if match else 1)

        custom = self._custom_delimiter
        if custom and text.startswith(custom, pos, end):
            return Token(TokenKind.DELIMITER, pos, len(custom))

        for prefix in dialect.line_comment_prefixes:
            if text.startswith(prefix, pos, end):
                newline = text.find("\n", pos, end)
                return Token(TokenKind.COMMENT, pos, (newline + 1 if newline >= 0 else end) - pos)
        if text.startswith("/*", pos, end):
            close = text.find("*/", pos + 2, end)
            return Token(TokenKind.COMMENT, pos, (close + 2 if close >= 0 else end) - pos)

        if self._at_line_start(text, pos):
            directive = self._scan_directive(text, pos, end)
            if directive is not None:
                return directive

        if char in dialect.string_quotes:
            return Token(TokenKind.UNKNOWN, pos, self._scan_quoted(text, pos, end, char, dialect.backslash_escapes) - pos)
        if char in dialect.identifier_quotes:
            return Token(TokenKind.UNKNOWN, pos, self._scan_quoted(text, pos, end, char, False) - pos)
        if char == "[" and dialect.bracket_identifiers:
            return Token(TokenKind.UNKNOWN, pos, self._scan_quoted(text, pos, end, "]", False) - pos)

        if char == "$":
            if config.variables_enabled:
                match = VARIABLE_PATTERN.match(text, pos, end)
                if match:
                    return Token(TokenKind.PARAMETER, pos, match.end() - pos)
            if dialect.supports_dollar_quotes:
                match = _DOLLAR_QUOTE_RE.match(text, pos, end)
                if match:
                    return Token(TokenKind.BLOCK_TOGGLE, pos, match.end() - pos)

        if config.parameters_enabled:
            parameter = self._scan_parameter(text, pos, end)
            if parameter is not None:
                return parameter

        if not custom:
            for rule in self._rules.delimiters:
                if self._matches_delimiter(text, pos, end, rule):
                    return Token(TokenKind.DELIMITER, pos, len(rule.text))

        match = _WORD_RE.match(text, pos, end)
        if match:
            word = match.group(0)
            if custom:
                cut = word.find(custom, 1)
                if cut > 0:
                    word = word[:cut]
            return Token(self._classify_word(word, text, pos + len(word), end), pos, len(word))

        match = _NUMBER_RE.match(text, pos, end)
        if match:
            return Token(TokenKind.UNKNOWN, pos, match.end() - pos)

        return Token(TokenKind.UNKNOWN, pos, 1)

    def _scan_directive(self, text: str, pos: int, end: int) -> Optional[Token]:
        line_end = self._line_end(text, pos, end)
        prefix = self._config.control_command_prefix
        if text.startswith(prefix, pos, line_end):
            match = self._rules.control_re.match(text, pos, line_end)
            command_id = match.group(1).lower() if match and match.group(1) else None
            return ControlToken(TokenKind.CONTROL, pos, line_end - pos, command_id)
        if self._dialect.supports_delimiter_redefinition:
            match = _DELIMITER_REDEFINITION_RE.match(text, pos, line_end)
            if match:
                self._redefine_delimiter(match.group(1))
                return ControlToken(TokenKind.SET_DELIMITER, pos, line_end - pos, DELIMITER_COMMAND_ID)
        return None

    def _scan_parameter(self, text: str, pos: int, end: int) -> Optional[Token]:
        char = text[pos]
        following = text[pos + 1] if pos + 1 < end else ""
        marker = self._config.anonymous_parameter_marker
        if char == marker:
            if marker == "?" and following and following in MARKER_OPERATOR_SUFFIXES:
                return Token(TokenKind.UNKNOWN, pos, 2)
            return Token(TokenKind.PARAMETER, pos, 1)
        prefix = self._config.named_parameter_prefix
        if char == prefix:
            if following == prefix:
                return Token(TokenKind.UNKNOWN, pos, 2)
            match = self._rules.named_parameter_re.match(text, pos, end)
            if match:
                return Token(TokenKind.PARAMETER, pos, match.end() - pos)
        return None

    def _matches_delimiter(self, text: str, pos: int, end: int, rule: _DelimiterRule) -> bool:
        if rule.is_word:
            if rule.pattern is None or not rule.pattern.match(text, pos, end):
                return False
            if pos > 0 and _is_word_char(text[pos - 1]):
                return False
        elif not text.startswith(rule.text, pos, end):
            return False
        if rule.is_line:
            line_end = self._line_end(text, pos, end)
            return self._at_line_start(text, pos) and not text[pos + len(rule.text) : line_end].strip()
        return True

    def _classify_word(self, word: str, text: str, stop: int, end: int) -> TokenKind:
        dialect = self._dialect
        upper = word.upper()
        previous = self._last_word
        self._last_word = upper
        if upper in dialect.block_end_keywords:
            following = self._next_word(text, stop, end, same_line=True)
            if following in dialect.block_end_qualifiers and following not in dialect.block_begin_keywords:
                return TokenKind.UNKNOWN
            return TokenKind.BLOCK_END
        if upper in dialect.block_begin_keywords:
            if upper == "BEGIN" and self._is_transaction_begin(text, stop, end):
                return TokenKind.UNKNOWN
            return TokenKind.BLOCK_BEGIN
        if upper in dialect.block_header_keywords:
            return TokenKind.BLOCK_HEADER
        if upper in dialect.create_block_headers and previous in CREATE_PREFIXES:
            return TokenKind.BLOCK_HEADER
        return TokenKind.UNKNOWN

    def _is_transaction_begin(self, text: str, stop: int, end: int) -> bool:
        """``BEGIN`` followed by a delimiter, the range end or a transaction word."""
        pos = self._skip_whitespace(text, stop, end)
        if pos >= end:
            return True
        if self._custom_delimiter and text.startswith(self._custom_delimiter, pos, end):
            return True
        if any(not rule.is_word and text.startswith(rule.text, pos, end) for rule in self._rules.delimiters):
            return True
        return self._next_word(text, stop, end) in self._dialect.transaction_keywords

    def _next_word(self, text: str, stop: int, end: int, same_line: bool = False) -> Optional[str]:
        """Upper-cased word following ``stop`` after whitespace (blanks only with ``same_line``), if any."""
        start = self._skip_blanks(text, stop, end) if same_line else self._skip_whitespace(text, stop, end)
        match = _WORD_RE.match(text, start, end)
        return match.group(0).upper() if match else None

    def _redefine_delimiter(self, delimiter: str) -> None:
        if delimiter in self._dialect.statement_delimiters:
            self._custom_delimiter = None
        else:
            self._custom_delimiter = delimiter
        logger.debug("Statement delimiter redefined to %r", delimiter)

    @staticmethod
    def _skip_whitespace(text: str, pos: int, end: int) -> int:
        while pos < end and text[pos].isspace():
            pos += 1
        return pos

    @staticmethod
    def _skip_blanks(text: str, pos: int, end: int) -> int:
        while pos < end and text[pos] in " \t":
            pos += 1
        return pos

    @staticmethod
    def _scan_quoted(text: str, pos: int, end: int, close: str, backslash_escapes: bool) -> int:
        """Offset just past the closing quote; the range end when unterminated."""
        index = pos + 1
        while index < end:
            char = text[index]
            if backslash_escapes and char == "\\":
                index += 2
                continue
            if char == close:
                if index + 1 < end and text[index + 1] == close:
                    index += 2
                    continue
                return index + 1
            index += 1
        return end

    @staticmethod
    def _at_line_start(text: str, pos: int) -> bool:
        index = pos - 1
        while index >= 0 and text[index] in " \t":
            index -= 1
        return index < 0 or text[index] in "\r\n"

    @staticmethod
    def _line_end(text: str, pos: int, end: int) -> int:
        newline = text.find("\n", pos, end)
        line_end = newline if newline >= 0 else end
        if line_end > pos and text[line_end - 1] == "\r":
            line_end -= 1
        return line_end
