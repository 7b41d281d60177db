"""Per-call parse configuration."""

from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlscript.core.dialects import DialectCapabilities, get_dialect
from sqlscript.exceptions import ImproperConfigurationError

__all__ = ("PARSE_CONFIG_SLOTS", "ParseConfig")

PARSE_CONFIG_SLOTS: Final = (
    "dialect",
    "blank_line_is_delimiter",
    "parameters_enabled",
    "support_params_in_ddl",
    "variables_enabled",
    "anonymous_parameter_marker",
    "named_parameter_prefix",
    "control_command_prefix",
    "remove_trailing_delimiter",
)


@mypyc_attr(allow_interpreted_subclasses=False)
class ParseConfig:
    """Configuration consumed by the tokenizer, segmenter and parameter extractor.

    Treated as read-only for the duration of a call; use :meth:`replace` to derive
    a modified copy.
    """

    __slots__ = PARSE_CONFIG_SLOTS

    def __init__(
        self,
        dialect: "Optional[str | DialectCapabilities]" = None,
        blank_line_is_delimiter: Optional[bool] = None,
        parameters_enabled: bool = True,
        support_params_in_ddl: bool = False,
        variables_enabled: bool = True,
        anonymous_parameter_marker: str = "?",
        named_parameter_prefix: str = ":",
        control_command_prefix: str = "@",
        remove_trailing_delimiter: bool = True,
    ) -> None:
        """Initialize the parse configuration.

        Args:
            dialect: Dialect descriptor or registered dialect name (generic when omitted)
            blank_line_is_delimiter: Treat two or more line feeds as a statement boundary;
                None uses the dialect default
            parameters_enabled: Recognize bind parameters at all
            support_params_in_ddl: Keep parameters found in DDL statements
            variables_enabled: Recognize ``${name}`` variables
            anonymous_parameter_marker: Single character marking a positional parameter
            named_parameter_prefix: Single character prefixing a named parameter
            control_command_prefix: Prefix of client-side control directives
            remove_trailing_delimiter: Trim the trailing delimiter of a selected statement

        Raises:
            ImproperConfigurationError: If a marker or prefix is not a single character.
        """
        for label, value in (
            ("anonymous_parameter_marker", anonymous_parameter_marker),
            ("named_parameter_prefix", named_parameter_prefix),
        ):
            if len(value) != 1 or value.isspace() or value.isalnum():
                msg = f"{label} must be a single punctuation character, got {value!r}"
                raise ImproperConfigurationError(msg)
        if not control_command_prefix or control_command_prefix.isspace():
            msg = "control_command_prefix must not be empty"
            raise ImproperConfigurationError(msg)

        self.dialect = get_dialect(dialect)
        self.blank_line_is_delimiter = (
            self.dialect.blank_line_is_delimiter if blank_line_is_delimiter is None else blank_line_is_delimiter
        )
        self.parameters_enabled = parameters_enabled
        self.support_params_in_ddl = support_params_in_ddl
        self.variables_enabled = variables_enabled
        self.anonymous_parameter_marker = anonymous_parameter_marker
        self.named_parameter_prefix = named_parameter_prefix
        self.control_command_prefix = control_command_prefix
        self.remove_trailing_delimiter = remove_trailing_delimiter

    def replace(self, **kwargs: Any) -> "ParseConfig":
        """Immutable update pattern.

        Args:
            **kwargs: Attributes to update

        Returns:
            New ParseConfig instance with updated attributes
        """
        for key in kwargs:
            if key not in PARSE_CONFIG_SLOTS:
                msg = f"{key!r} is not a field in {type(self).__name__}"
                raise TypeError(msg)

        current_kwargs = {slot: getattr(self, slot) for slot in PARSE_CONFIG_SLOTS}
        current_kwargs.update(kwargs)
        return type(self)(**current_kwargs)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, slot) for slot in PARSE_CONFIG_SLOTS[1:]) + (self.dialect.name,))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        if self.dialect.name != other.dialect.name or type(self.dialect) is not type(other.dialect):
            return False
        return all(getattr(self, slot) == getattr(other, slot) for slot in PARSE_CONFIG_SLOTS[1:])

    def __repr__(self) -> str:
        field_strs = [f"{slot}={getattr(self, slot)!r}" for slot in PARSE_CONFIG_SLOTS]
        return f"{self.__class__.__name__}({', '.join(field_strs)})"
