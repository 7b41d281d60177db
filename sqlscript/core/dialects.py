"""Dialect capability descriptors.

A dialect tells the tokenizer and the segmenter which keywords open and close
blocks, which literals delimit statements and where a delimiter belongs in the
extracted statement text. Descriptors are read-only: the sets they expose are
frozen and built once per instance.

Architecture:
- DialectCapabilities: base descriptor with generic SQL defaults
- One subclass per supported dialect: Oracle, T-SQL, PostgreSQL, MySQL, SQLite, DuckDB, BigQuery
- get_dialect(): name and alias registry with a generic fallback
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Final, Optional

from mypy_extensions import mypyc_attr

from sqlscript.utils.logging import get_logger

__all__ = (
    "BLOCK_END_KEYWORD",
    "CONSTRUCT_END_QUALIFIERS",
    "DEFAULT_STATEMENT_DELIMITER",
    "BigQueryDialect",
    "DialectCapabilities",
    "DuckDBDialect",
    "GenericDialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "TSQLDialect",
    "available_dialects",
    "get_dialect",
    "register_dialect",
)

logger = get_logger("sqlscript.core.dialects")

DEFAULT_STATEMENT_DELIMITER: Final = ";"
BLOCK_END_KEYWORD: Final = "END"
# Words that make END close a construct (END IF) rather than a block, unless they open blocks themselves.
CONSTRUCT_END_QUALIFIERS: Final = frozenset({"IF", "LOOP", "CASE", "WHILE", "REPEAT", "FOR"})

DIALECT_SLOTS: Final = (
    "_block_begin_keywords",
    "_block_end_keywords",
    "_block_header_keywords",
    "_create_block_headers",
    "_ddl_keywords",
    "_execute_keywords",
    "_transaction_keywords",
)


@mypyc_attr(allow_interpreted_subclasses=True)
class DialectCapabilities(ABC):
    """Abstract capability descriptor for one SQL variant.

    Keyword sets are upper-case. Subclasses override the lazily built sets and the
    boolean capability flags; everything else keeps the generic SQL behaviour.
    """

    __slots__ = DIALECT_SLOTS

    def __init__(self) -> None:
        self._block_begin_keywords: Optional[frozenset[str]] = None
        self._block_end_keywords: Optional[frozenset[str]] = None
        self._block_header_keywords: Optional[frozenset[str]] = None
        self._create_block_headers: Optional[frozenset[str]] = None
        self._ddl_keywords: Optional[frozenset[str]] = None
        self._execute_keywords: Optional[frozenset[str]] = None
        self._transaction_keywords: Optional[frozenset[str]] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the dialect (e.g., 'oracle', 'tsql')."""

    @property
    def statement_delimiters(self) -> "tuple[str, ...]":
        """Literals that end a statement, default delimiter first."""
        return (DEFAULT_STATEMENT_DELIMITER,)

    @property
    def line_delimiters(self) -> "frozenset[str]":
        """Delimiters recognized only when they stand alone on their line (e.g. Oracle ``/``)."""
        return frozenset()

    @property
    def default_delimiter(self) -> str:
        return DEFAULT_STATEMENT_DELIMITER

    @property
    def block_end_keyword(self) -> str:
        return BLOCK_END_KEYWORD

    @property
    def block_begin_keywords(self) -> "frozenset[str]":
        """Keywords that open a block body (e.g. BEGIN, CASE)."""
        if self._block_begin_keywords is None:
            self._block_begin_keywords = frozenset({"BEGIN", "CASE"})
        return self._block_begin_keywords

    @property
    def block_end_keywords(self) -> "frozenset[str]":
        """Keywords that close a block (e.g. END)."""
        if self._block_end_keywords is None:
            self._block_end_keywords = frozenset({BLOCK_END_KEYWORD})
        return self._block_end_keywords

    @property
    def block_end_qualifiers(self) -> "frozenset[str]":
        """Words after END that close a non-block construct when they are not block begin keywords."""
        return CONSTRUCT_END_QUALIFIERS

    @property
    def block_header_keywords(self) -> "frozenset[str]":
        """Keywords that open a header whose body starts at the next block begin (e.g. DECLARE)."""
        if self._block_header_keywords is None:
            self._block_header_keywords = frozenset({"DECLARE"})
        return self._block_header_keywords

    @property
    def create_block_headers(self) -> "frozenset[str]":
        """Header keywords recognized only right after ``CREATE [OR REPLACE]`` (e.g. PROCEDURE)."""
        if self._create_block_headers is None:
            self._create_block_headers = frozenset()
        return self._create_block_headers

    @property
    def ddl_keywords(self) -> "frozenset[str]":
        if self._ddl_keywords is None:
            self._ddl_keywords = frozenset({"CREATE", "ALTER", "DROP"})
        return self._ddl_keywords

    @property
    def execute_keywords(self) -> "frozenset[str]":
        if self._execute_keywords is None:
            self._execute_keywords = frozenset({"EXEC", "EXECUTE", "CALL"})
        return self._execute_keywords

    @property
    def transaction_keywords(self) -> "frozenset[str]":
        """Words after ``BEGIN`` that make it a transaction statement rather than a block."""
        if self._transaction_keywords is None:
            self._transaction_keywords = frozenset({
                "TRANSACTION",
                "TRAN",
                "WORK",
                "DEFERRED",
                "IMMEDIATE",
                "EXCLUSIVE",
                "ISOLATION",
                "READ",
            })
        return self._transaction_keywords

    @property
    def line_comment_prefixes(self) -> "tuple[str, ...]":
        return ("--",)

    @property
    def string_quotes(self) -> "tuple[str, ...]":
        return ("'",)

    @property
    def identifier_quotes(self) -> "tuple[str, ...]":
        return ('"',)

    @property
    def backslash_escapes(self) -> bool:
        return False

    @property
    def bracket_identifiers(self) -> bool:
        """``[name]`` is a quoted identifier rather than a bracket pair."""
        return False

    @property
    def supports_dollar_quotes(self) -> bool:
        """``$tag$ ... $tag$`` bodies are toggle blocks."""
        return False

    @property
    def supports_delimiter_redefinition(self) -> bool:
        """``DELIMITER <text>`` lines redefine the statement delimiter."""
        return False

    @property
    def blank_line_is_delimiter(self) -> bool:
        return False

    @property
    def supports_comment_query(self) -> bool:
        """A statement made only of comments is still a statement."""
        return False

    @property
    def is_delimiter_after_query(self) -> bool:
        """Statements containing blocks keep their trailing ``;``."""
        return False

    @property
    def is_delimiter_after_block(self) -> bool:
        """Statements ending with the block-end keyword keep their trailing ``;``."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class GenericDialect(DialectCapabilities):
    """Standard SQL with ``DELIMITER`` support."""

    @property
    def name(self) -> str:
        return "generic"

    @property
    def supports_delimiter_redefinition(self) -> bool:
        return True


class OracleDialect(DialectCapabilities):
    """Oracle PL/SQL: ``/`` terminator, creation headers and ``END;`` blocks."""

    @property
    def name(self) -> str:
        return "oracle"

    @property
    def statement_delimiters(self) -> "tuple[str, ...]":
        return (DEFAULT_STATEMENT_DELIMITER, "/")

    @property
    def line_delimiters(self) -> "frozenset[str]":
        return frozenset({"/"})

    @property
    def block_begin_keywords(self) -> "frozenset[str]":
        if self._block_begin_keywords is None:
            self._block_begin_keywords = frozenset({"BEGIN", "CASE", "LOOP"})
        return self._block_begin_keywords

    @property
    def create_block_headers(self) -> "frozenset[str]":
        if self._create_block_headers is None:
            self._create_block_headers = frozenset({"FUNCTION", "PROCEDURE", "PACKAGE", "TRIGGER"})
        return self._create_block_headers

    @property
    def is_delimiter_after_block(self) -> bool:
        return True


class TSQLDialect(DialectCapabilities):
    """T-SQL (SQL Server): ``GO`` batches, ``[identifier]`` quoting."""

    @property
    def name(self) -> str:
        return "tsql"

    @property
    def statement_delimiters(self) -> "tuple[str, ...]":
        return (DEFAULT_STATEMENT_DELIMITER, "GO")

    @property
    def line_delimiters(self) -> "frozenset[str]":
        return frozenset({"GO"})

    @property
    def block_header_keywords(self) -> "frozenset[str]":
        if self._block_header_keywords is None:
            self._block_header_keywords = frozenset()
        return self._block_header_keywords

    @property
    def block_end_qualifiers(self) -> "frozenset[str]":
        # Statements need no terminator; a word after END starts the next statement.
        return frozenset()

    @property
    def bracket_identifiers(self) -> bool:
        return True

    @property
    def is_delimiter_after_query(self) -> bool:
        return True


class PostgreSQLDialect(DialectCapabilities):
    """PostgreSQL: dollar-quoted function bodies."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def block_begin_keywords(self) -> "frozenset[str]":
        if self._block_begin_keywords is None:
            self._block_begin_keywords = frozenset({"BEGIN", "CASE", "LOOP"})
        return self._block_begin_keywords

    @property
    def block_header_keywords(self) -> "frozenset[str]":
        if self._block_header_keywords is None:
            self._block_header_keywords = frozenset()
        return self._block_header_keywords

    @property
    def supports_dollar_quotes(self) -> bool:
        return True


class MySQLDialect(DialectCapabilities):
    """MySQL: ``DELIMITER`` redefinition, ``#`` comments, backtick identifiers."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def block_begin_keywords(self) -> "frozenset[str]":
        if self._block_begin_keywords is None:
            self._block_begin_keywords = frozenset({"BEGIN", "CASE", "LOOP"})
        return self._block_begin_keywords

    @property
    def line_comment_prefixes(self) -> "tuple[str, ...]":
        return ("--", "#")

    @property
    def identifier_quotes(self) -> "tuple[str, ...]":
        return ('"', "`")

    @property
    def backslash_escapes(self) -> bool:
        return True

    @property
    def supports_delimiter_redefinition(self) -> bool:
        return True


class SQLiteDialect(DialectCapabilities):
    """SQLite: trigger bodies end with ``END;``."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def block_header_keywords(self) -> "frozenset[str]":
        if self._block_header_keywords is None:
            self._block_header_keywords = frozenset()
        return self._block_header_keywords

    @property
    def identifier_quotes(self) -> "tuple[str, ...]":
        return ('"', "`")

    @property
    def is_delimiter_after_block(self) -> bool:
        return True


class DuckDBDialect(DialectCapabilities):
    @property
    def name(self) -> str:
        return "duckdb"

    @property
    def block_header_keywords(self) -> "frozenset[str]":
        if self._block_header_keywords is None:
            self._block_header_keywords = frozenset()
        return self._block_header_keywords


class BigQueryDialect(DialectCapabilities):
    @property
    def name(self) -> str:
        return "bigquery"

    @property
    def identifier_quotes(self) -> "tuple[str, ...]":
        return ("`",)

    @property
    def string_quotes(self) -> "tuple[str, ...]":
        return ("'", '"')


DialectFactory = Callable[[], DialectCapabilities]

_registry: "dict[str, DialectFactory]" = {
    "generic": GenericDialect,
    "oracle": OracleDialect,
    "tsql": TSQLDialect,
    "mssql": TSQLDialect,
    "sqlserver": TSQLDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "sqlite": SQLiteDialect,
    "duckdb": DuckDBDialect,
    "bigquery": BigQueryDialect,
}
_registry_lock = threading.Lock()


def register_dialect(name: str, factory: DialectFactory, *aliases: str) -> None:
    """Register a dialect factory under ``name`` and optional aliases."""
    with _registry_lock:
        for key in (name, *aliases):
            _registry[key.lower()] = factory


def available_dialects() -> "list[str]":
    """Registered dialect names and aliases, sorted."""
    return sorted(_registry)


def get_dialect(dialect: "Optional[str | DialectCapabilities]" = None) -> DialectCapabilities:
    """Resolve a dialect by name.

    Args:
        dialect: Dialect name or alias, an existing descriptor, or None for the generic dialect.

    Returns:
        The dialect descriptor. Unknown names fall back to the generic dialect with a warning.
    """
    if isinstance(dialect, DialectCapabilities):
        return dialect
    if dialect is None:
        return GenericDialect()
    factory = _registry.get(dialect.lower())
    if factory is None:
        logger.warning("Unknown dialect '%s', using generic SQL dialect", dialect)
        return GenericDialect()
    return factory()
