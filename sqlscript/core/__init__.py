"""Script segmentation core.

Architecture Overview:
- buffer.py: bounds-checked text buffer
- dialects.py: dialect capability descriptors and registry
- config.py: per-call parse configuration
- lexer.py: pull-based tokenizer over a scan range
- blocks.py: block stack that suppresses delimiters inside blocks
- segmenter.py: statement segmentation state machine
- parameters.py: bind parameter and variable extraction
- commands.py: control command registry
- document.py: cursor and selection helpers over one document
- cache.py: LRU cache for compiled tokenizer rules
"""

from sqlscript.core.blocks import BlockKind, BlockTracker
from sqlscript.core.buffer import TextBuffer
from sqlscript.core.cache import CacheKey, CacheStats, UnifiedCache
from sqlscript.core.commands import CommandHandler, CommandRegistry, get_command_registry
from sqlscript.core.config import ParseConfig
from sqlscript.core.dialects import (
    BigQueryDialect,
    DialectCapabilities,
    DuckDBDialect,
    GenericDialect,
    MySQLDialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    TSQLDialect,
    available_dialects,
    get_dialect,
    register_dialect,
)
from sqlscript.core.document import ScriptDocument
from sqlscript.core.elements import ControlCommand, Parameter, ScriptElement, Statement
from sqlscript.core.lexer import ScriptTokenizer
from sqlscript.core.parameters import ParameterExtractor, extract_parameters
from sqlscript.core.segmenter import StatementSegmenter, parse_all, parse_next
from sqlscript.core.tokens import ControlToken, Token, TokenKind

__all__ = (
    "BigQueryDialect",
    "BlockKind",
    "BlockTracker",
    "CacheKey",
    "CacheStats",
    "CommandHandler",
    "CommandRegistry",
    "ControlCommand",
    "ControlToken",
    "DialectCapabilities",
    "DuckDBDialect",
    "GenericDialect",
    "MySQLDialect",
    "OracleDialect",
    "Parameter",
    "ParameterExtractor",
    "ParseConfig",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "ScriptDocument",
    "ScriptElement",
    "ScriptTokenizer",
    "Statement",
    "StatementSegmenter",
    "TSQLDialect",
    "TextBuffer",
    "Token",
    "TokenKind",
    "UnifiedCache",
    "available_dialects",
    "extract_parameters",
    "get_command_registry",
    "get_dialect",
    "parse_all",
    "parse_next",
    "register_dialect",
)
