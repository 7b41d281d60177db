"""Tests for bind parameter and variable extraction."""

import logging

import pytest

from sqlscript.core.config import ParseConfig
from sqlscript.core.parameters import ParameterExtractor, extract_parameters


def _extract(sql: str, **kwargs):
    return extract_parameters(sql, 0, len(sql), **kwargs)


class TestNamedParameters:
    def test_repeated_name_chains_previous(self) -> None:
        parameters = _extract("SELECT * FROM t WHERE a = :id OR b = :id")
        assert [p.text for p in parameters] == [":id", ":id"]
        assert [p.ordinal for p in parameters] == [0, 1]
        assert parameters[0].previous is None
        assert parameters[1].previous is parameters[0]
        assert all(p.name == "id" and p.is_named for p in parameters)

    def test_chain_is_most_recent_first(self) -> None:
        parameters = _extract("VALUES (:a, :b, :a, :a)")
        assert parameters[3].previous is parameters[2]
        assert parameters[2].previous is parameters[0]
        assert parameters[1].previous is None

    def test_offsets_are_relative_to_statement(self) -> None:
        sql = "SELECT 1; SELECT :x"
        parameters = extract_parameters(sql, 10, 9)
        assert len(parameters) == 1
        assert parameters[0].offset == 7
        assert parameters[0].length == 2

    def test_numbered_parameters_are_not_named(self) -> None:
        parameters = _extract("SELECT :1, :1")
        assert [p.is_named for p in parameters] == [False, False]
        assert parameters[1].previous is None


class TestPositionalParameters:
    def test_anonymous_marker(self) -> None:
        parameters = _extract("SELECT * FROM t WHERE a = ? AND b = ?")
        assert [p.ordinal for p in parameters] == [0, 1]
        assert not any(p.is_named for p in parameters)
        assert parameters[1].previous is None

    def test_markers_inside_strings_and_comments_are_ignored(self) -> None:
        assert _extract("SELECT '?', ':x' -- :y ?\nFROM t /* :z */") == []

    def test_casts_and_operators_are_not_parameters(self) -> None:
        assert _extract("SELECT a::int, data ?| array['k'] FROM t") == []


class TestStatementClassification:
    @pytest.mark.parametrize("sql", ["CREATE TABLE t (id INT DEFAULT :x)", "alter table t add c int default ?"])
    def test_ddl_has_no_parameters(self, sql: str) -> None:
        assert _extract(sql) == []

    def test_ddl_parameters_kept_when_supported(self) -> None:
        assert len(_extract("CREATE TABLE t (id INT DEFAULT :x)", support_params_in_ddl=True)) == 1

    def test_exec_drops_anonymous_markers(self) -> None:
        parameters = _extract("EXEC p(?, :name)")
        assert [p.text for p in parameters] == [":name"]
        assert parameters[0].ordinal == 0

    def test_call_drops_anonymous_markers(self) -> None:
        assert _extract("call p(?)") == []

    def test_leading_comment_does_not_classify(self) -> None:
        assert len(_extract("-- setup\nCREATE TABLE t (c INT DEFAULT :x)")) == 0
        assert len(_extract("/* q */ SELECT :x")) == 1


class TestVariables:
    def test_variable_token(self) -> None:
        parameters = _extract("SELECT ${table_name}")
        assert len(parameters) == 1
        assert parameters[0].text == "${table_name}"
        assert parameters[0].name == "table_name"
        assert parameters[0].is_named

    def test_variable_inside_string_is_found(self) -> None:
        parameters = _extract("SELECT :a, '${var}', :b")
        assert [p.text for p in parameters] == [":a", "${var}", ":b"]
        assert [p.ordinal for p in parameters] == [0, 1, 2]
        assert parameters[1].offset == 12

    def test_variable_in_ddl_is_found(self) -> None:
        parameters = _extract("CREATE TABLE ${schema}.t (id INT DEFAULT :x)")
        assert [p.text for p in parameters] == ["${schema}"]

    def test_variables_disabled(self) -> None:
        assert _extract("SELECT ${var}, '${other}'", variables_enabled=False) == []

    def test_variable_and_parameter_share_chain(self) -> None:
        parameters = _extract("SELECT :v, '${v}'")
        assert parameters[1].previous is parameters[0]


class TestExtractor:
    def test_buffer_failure_returns_partial_result(self, caplog: pytest.LogCaptureFixture) -> None:
        extractor = ParameterExtractor(ParseConfig())
        with caplog.at_level(logging.WARNING, logger="sqlscript"):
            parameters = extractor.extract("SELECT :a", 0, 50)
        assert [p.text for p in parameters] == [":a"]
        assert "Error parsing variables" in caplog.text

    def test_parameters_disabled(self) -> None:
        extractor = ParameterExtractor(ParseConfig(parameters_enabled=False, variables_enabled=False))
        assert extractor.extract("SELECT :a, ?", 0, 12) == []

    def test_custom_markers(self) -> None:
        config = ParseConfig(named_parameter_prefix="@", anonymous_parameter_marker="#", control_command_prefix="!")
        parameters = ParameterExtractor(config).extract("SELECT @id, #", 0, 13)
        assert [(p.text, p.name, p.is_named) for p in parameters] == [("@id", "id", True), ("#", "#", False)]

    def test_dialect_override_with_config(self) -> None:
        parameters = extract_parameters("SELECT :a", 0, 9, dialect="postgresql", config=ParseConfig(dialect="mysql"))
        assert len(parameters) == 1

    def test_to_dict(self) -> None:
        parameters = _extract("SELECT :a, :a")
        assert parameters[1].to_dict() == {
            "ordinal": 1,
            "name": "a",
            "text": ":a",
            "is_named": True,
            "offset": 11,
            "length": 2,
            "previous": 0,
        }
