import pytest

from sqlscript.core.config import ParseConfig
from sqlscript.core.dialects import GenericDialect, OracleDialect
from sqlscript.exceptions import ImproperConfigurationError


class _BlankLineDialect(GenericDialect):
    @property
    def name(self) -> str:
        return "paragraphs"

    @property
    def blank_line_is_delimiter(self) -> bool:
        return True


def test_defaults() -> None:
    config = ParseConfig()
    assert isinstance(config.dialect, GenericDialect)
    assert config.parameters_enabled
    assert config.variables_enabled
    assert not config.support_params_in_ddl
    assert not config.blank_line_is_delimiter
    assert config.anonymous_parameter_marker == "?"
    assert config.named_parameter_prefix == ":"
    assert config.control_command_prefix == "@"
    assert config.remove_trailing_delimiter


def test_dialect_by_name() -> None:
    assert isinstance(ParseConfig(dialect="oracle").dialect, OracleDialect)


def test_blank_line_default_follows_dialect() -> None:
    assert ParseConfig(dialect=_BlankLineDialect()).blank_line_is_delimiter
    assert not ParseConfig(dialect=_BlankLineDialect(), blank_line_is_delimiter=False).blank_line_is_delimiter


def test_replace_returns_new_instance() -> None:
    config = ParseConfig()
    updated = config.replace(dialect="oracle", variables_enabled=False)
    assert updated is not config
    assert updated.dialect.name == "oracle"
    assert not updated.variables_enabled
    assert config.dialect.name == "generic"
    assert config.variables_enabled


def test_replace_rejects_unknown_field() -> None:
    with pytest.raises(TypeError, match="not a field"):
        ParseConfig().replace(delimiter=";")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"anonymous_parameter_marker": "??"},
        {"anonymous_parameter_marker": "x"},
        {"named_parameter_prefix": " "},
        {"named_parameter_prefix": ""},
        {"control_command_prefix": ""},
    ],
)
def test_invalid_markers(kwargs: dict) -> None:
    with pytest.raises(ImproperConfigurationError):
        ParseConfig(**kwargs)


def test_equality_and_hash() -> None:
    assert ParseConfig(dialect="mysql") == ParseConfig(dialect="mariadb")
    assert hash(ParseConfig(dialect="mysql")) == hash(ParseConfig(dialect="mysql"))
    assert ParseConfig(dialect="mysql") != ParseConfig(dialect="oracle")
    assert ParseConfig() != ParseConfig(parameters_enabled=False)


def test_repr() -> None:
    assert "parameters_enabled=True" in repr(ParseConfig())
