"""sqlscript: SQL script splitting and parameter extraction for Python."""

from sqlscript import core, exceptions, utils
from sqlscript.__metadata__ import __version__
from sqlscript.core import (
    ControlCommand,
    Parameter,
    ParseConfig,
    ScriptDocument,
    ScriptElement,
    Statement,
    StatementSegmenter,
    available_dialects,
    extract_parameters,
    get_dialect,
    parse_all,
    parse_next,
)
from sqlscript.exceptions import (
    BufferAccessError,
    ImproperConfigurationError,
    MissingDependencyError,
    SQLParsingError,
    SQLScriptError,
)

__all__ = (
    "BufferAccessError",
    "ControlCommand",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "Parameter",
    "ParseConfig",
    "SQLParsingError",
    "SQLScriptError",
    "ScriptDocument",
    "ScriptElement",
    "Statement",
    "StatementSegmenter",
    "__version__",
    "available_dialects",
    "core",
    "exceptions",
    "extract_parameters",
    "get_dialect",
    "parse_all",
    "parse_next",
    "utils",
)
