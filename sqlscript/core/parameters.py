"""Bind parameter and variable extraction.

Parameters are found in two passes over one statement span:

1. A token pass: every parameter token in SQL context (not inside strings or
   comments) becomes a :class:`Parameter`, unless the statement is DDL or the
   token is the anonymous marker of a procedure call.
2. A pattern pass over the raw statement text for ``${name}`` variables. This
   pass ignores SQL context: the client substitutes variables wherever they
   appear, string literals and comments included.
"""

from typing import TYPE_CHECKING, Optional, Union

from mypy_extensions import mypyc_attr

from sqlscript.core.buffer import TextBuffer
from sqlscript.core.config import ParseConfig
from sqlscript.core.elements import Parameter
from sqlscript.core.lexer import VARIABLE_PATTERN, ScriptTokenizer
from sqlscript.core.tokens import TokenKind
from sqlscript.exceptions import BufferAccessError
from sqlscript.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlscript.core.dialects import DialectCapabilities
    from sqlscript.core.tokens import Token
    from sqlscript.protocols import TokenSource

__all__ = ("ParameterExtractor", "extract_parameters", "link_previous_parameters")

logger = get_logger("sqlscript.core.parameters")


def link_previous_parameters(parameters: "list[Parameter]") -> None:
    """Point every named parameter at the closest earlier one with the same name."""
    last_seen: dict[str, Parameter] = {}
    for parameter in parameters:
        parameter.previous = None
        if not parameter.is_named:
            continue
        parameter.previous = last_seen.get(parameter.name)
        last_seen[parameter.name] = parameter


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterExtractor:
    """Extract the ordered parameters of one statement span."""

    __slots__ = ("_config", "_tokenizer")

    def __init__(self, config: Optional[ParseConfig] = None, tokenizer: "Optional[TokenSource]" = None) -> None:
        self._config = config or (tokenizer.config if tokenizer is not None else ParseConfig())
        self._tokenizer: TokenSource = tokenizer or ScriptTokenizer(self._config)

    @property
    def config(self) -> ParseConfig:
        return self._config

    def extract(self, buffer: Union[TextBuffer, str], statement_offset: int, statement_length: int) -> "list[Parameter]":
        """Extract parameters of ``[statement_offset, statement_offset + statement_length)``.

        Offsets of the returned parameters are relative to ``statement_offset``.
        """
        if isinstance(buffer, str):
            buffer = TextBuffer(buffer)
        parameters = self._extract_tokens(buffer, statement_offset, statement_length)
        if self._config.variables_enabled:
            self._extract_variables(buffer, statement_offset, statement_length, parameters)
        link_previous_parameters(parameters)
        return parameters

    def _extract_tokens(self, buffer: TextBuffer, statement_offset: int, statement_length: int) -> "list[Parameter]":
        config = self._config
        dialect = config.dialect
        statement_end = statement_offset + statement_length
        parameters: list[Parameter] = []
        is_ddl = False
        is_exec = False
        first_keyword = True

        self._tokenizer.set_range(buffer, statement_offset, statement_length)
        while True:
            token = self._tokenizer.next_token()
            if token.is_eof or token.offset > statement_end:
                break
            if token.is_whitespace or token.kind is TokenKind.COMMENT:
                continue
            if not config.support_params_in_ddl and first_keyword:
                word = self._token_text(buffer, token)
                if word is not None:
                    keyword = word.upper()
                    if keyword in dialect.ddl_keywords:
                        is_ddl = True
                    else:
                        is_exec = keyword in dialect.execute_keywords
                first_keyword = False
            if token.kind is not TokenKind.PARAMETER or token.length == 0:
                continue
            if is_ddl:
                continue
            text = self._token_text(buffer, token)
            if text is None:
                continue
            if is_exec and text == config.anonymous_parameter_marker:
                # Positional markers of procedure calls are output/placeholder slots, not binds.
                continue
            parameters.append(self._make_parameter(len(parameters), text, token.offset - statement_offset))
        return parameters

    def _extract_variables(
        self, buffer: TextBuffer, statement_offset: int, statement_length: int, parameters: "list[Parameter]"
    ) -> None:
        try:
            statement_text = buffer.get(statement_offset, statement_length)
        except BufferAccessError as exc:
            logger.warning("Error parsing variables: %s", exc)
            return

        for match in VARIABLE_PATTERN.finditer(statement_text):
            start = match.start()
            ordinal = 0
            existing = None
            for parameter in parameters:
                if parameter.offset == start:
                    existing = parameter
                    break
                if parameter.offset < start:
                    ordinal += 1
            if existing is not None:
                continue
            parameters.insert(ordinal, self._make_parameter(ordinal, match.group(0), start))
            for later in parameters[ordinal + 1 :]:
                later.ordinal += 1

    def _make_parameter(self, ordinal: int, text: str, offset: int) -> Parameter:
        config = self._config
        variable = VARIABLE_PATTERN.fullmatch(text)
        if variable is not None:
            name = variable.group(1)
        elif text.startswith(config.named_parameter_prefix) and len(text) > len(config.named_parameter_prefix):
            name = text[len(config.named_parameter_prefix) :]
        else:
            name = text
        is_named = text != config.anonymous_parameter_marker and not name.isdigit()
        return Parameter(ordinal, text, offset, len(text), name=name, is_named=is_named)

    @staticmethod
    def _token_text(buffer: TextBuffer, token: "Token") -> Optional[str]:
        try:
            return token.text(buffer)
        except BufferAccessError as exc:
            logger.warning("Can't extract query parameter: %s", exc)
            return None


def extract_parameters(
    text: Union[TextBuffer, str],
    statement_offset: int,
    statement_length: int,
    dialect: "Optional[Union[str, DialectCapabilities]]" = None,
    support_params_in_ddl: bool = False,
    variables_enabled: bool = True,
    config: Optional[ParseConfig] = None,
) -> "list[Parameter]":
    """Extract the parameters of one statement span.

    Args:
        text: Script text or buffer.
        statement_offset: Absolute offset of the statement.
        statement_length: Length of the statement span.
        dialect: Dialect name or descriptor; overrides the dialect of ``config``.
        support_params_in_ddl: Keep parameters of DDL statements.
        variables_enabled: Also collect ``${name}`` variables.
        config: Base configuration for markers and prefixes.

    Returns:
        Parameters ordered by position, offsets relative to ``statement_offset``.
    """
    if config is None:
        config = ParseConfig(
            dialect=dialect, support_params_in_ddl=support_params_in_ddl, variables_enabled=variables_enabled
        )
    else:
        overrides: dict[str, object] = {
            "support_params_in_ddl": support_params_in_ddl,
            "variables_enabled": variables_enabled,
        }
        if dialect is not None:
            overrides["dialect"] = dialect
        config = config.replace(**overrides)
    return ParameterExtractor(config).extract(text, statement_offset, statement_length)
