"""Tests for statement segmentation."""

import logging
from contextlib import nullcontext

import pytest

from sqlscript.core.buffer import TextBuffer
from sqlscript.core.commands import CommandHandler, CommandRegistry
from sqlscript.core.config import ParseConfig
from sqlscript.core.elements import ControlCommand, Statement
from sqlscript.core.segmenter import StatementSegmenter, parse_all, parse_next
from sqlscript.core.tokens import Token, TokenKind
from sqlscript.protocols import TokenSource


def _texts(script: str, dialect: str = "generic", **kwargs) -> "list[str]":
    return [element.text for element in parse_all(script, config=ParseConfig(dialect=dialect), **kwargs)]


class TestSimpleStatements:
    def test_two_statements(self) -> None:
        elements = parse_all("SELECT 1; SELECT 2;")
        assert elements == [Statement("SELECT 1", 0, 9), Statement("SELECT 2", 10, 9)]

    def test_keep_delimiters(self) -> None:
        assert _texts("SELECT 1; SELECT 2;", keep_delimiters=True) == ["SELECT 1;", "SELECT 2;"]

    def test_last_statement_without_delimiter(self) -> None:
        elements = parse_all("SELECT 1; SELECT 2")
        assert elements[1] == Statement("SELECT 2", 10, 8)

    @pytest.mark.parametrize("script", ["", "   \n\t", "-- only a comment\n", "/* nothing */", ";;;"])
    def test_nothing_to_execute(self, script: str) -> None:
        assert parse_all(script) == []

    def test_empty_statements_are_skipped(self) -> None:
        elements = parse_all(";;SELECT 1;;")
        assert elements == [Statement("SELECT 1", 2, 9)]

    def test_delimiter_inside_string(self) -> None:
        assert _texts("SELECT 'a;b'; SELECT \"c;d\";") == ["SELECT 'a;b'", 'SELECT "c;d"']

    def test_delimiter_inside_comment(self) -> None:
        assert _texts("SELECT 1 /* ; */ + 1; -- ;\nSELECT 2;") == ["SELECT 1 /* ; */ + 1", "-- ;\nSELECT 2"]

    def test_delimiter_inside_brackets(self) -> None:
        assert _texts("INSERT INTO t VALUES (1;2); SELECT 2;") == ["INSERT INTO t VALUES (1;2)", "SELECT 2"]

    def test_line_endings_are_normalized(self) -> None:
        elements = parse_all("SELECT 1\r\nFROM t;\r\n")
        assert elements == [Statement("SELECT 1\nFROM t", 0, 17)]

    def test_statement_in_sub_range(self) -> None:
        assert [e.text for e in parse_all("SELECT 1; SELECT 2; SELECT 3;", start_offset=10, length=9)] == ["SELECT 2"]

    def test_range_longer_than_buffer(self) -> None:
        assert parse_next("abc", 0, 10, 0) is None


class TestBlocks:
    def test_begin_end_block(self) -> None:
        elements = parse_all("BEGIN SELECT 1; END;")
        assert elements == [Statement("BEGIN SELECT 1; END", 0, 20)]

    def test_block_followed_by_statement(self) -> None:
        assert _texts("DECLARE x INT; BEGIN SELECT 1; END; SELECT 2;") == [
            "DECLARE x INT; BEGIN SELECT 1; END",
            "SELECT 2",
        ]

    def test_transaction_begin_is_a_statement(self) -> None:
        assert _texts("BEGIN; INSERT INTO t VALUES (1); COMMIT;") == [
            "BEGIN",
            "INSERT INTO t VALUES (1)",
            "COMMIT",
        ]

    def test_case_expression(self) -> None:
        assert _texts("SELECT CASE WHEN a = 1 THEN 'x' END FROM t; SELECT 2;") == [
            "SELECT CASE WHEN a = 1 THEN 'x' END FROM t",
            "SELECT 2",
        ]

    def test_unclosed_block_runs_to_end(self) -> None:
        assert _texts("BEGIN SELECT 1; SELECT 2;") == ["BEGIN SELECT 1; SELECT 2;"]

    def test_stray_end_is_tolerated(self) -> None:
        assert _texts("END; SELECT 1;") == ["END", "SELECT 1"]

    def test_delimiter_after_block_dialect_keeps_semicolon(self) -> None:
        assert _texts("BEGIN SELECT 1; END;", dialect="sqlite") == ["BEGIN SELECT 1; END;"]

    def test_delimiter_after_query_dialect_keeps_semicolon(self) -> None:
        assert _texts("IF 1 = 1 BEGIN SELECT 1; END; SELECT 2;", dialect="tsql") == [
            "IF 1 = 1 BEGIN SELECT 1; END;",
            "SELECT 2",
        ]


class TestOracle:
    def test_plsql_with_construct_ends(self) -> None:
        script = (
            "BEGIN\n"
            "  FOR i IN 1..3 LOOP\n"
            "    NULL;\n"
            "  END LOOP;\n"
            "  IF x > 0 THEN\n"
            "    NULL;\n"
            "  END IF;\n"
            "END;\n"
            "/\n"
            "SELECT 1 FROM dual;\n"
        )
        texts = _texts(script, dialect="oracle")
        assert len(texts) == 2
        assert texts[0].startswith("BEGIN\n")
        assert texts[0].endswith("  END IF;\nEND;")
        assert texts[1] == "SELECT 1 FROM dual"

    def test_slash_delimiter(self) -> None:
        script = "SELECT 1 FROM dual\n/\nSELECT 2 FROM dual\n/\n"
        elements = parse_all(script, config=ParseConfig(dialect="oracle"))
        assert [e.text for e in elements] == ["SELECT 1 FROM dual\n", "SELECT 2 FROM dual\n"]
        assert elements[0].end_offset == 20

    def test_create_procedure(self) -> None:
        script = "CREATE OR REPLACE PROCEDURE p IS\n  v NUMBER;\nBEGIN\n  v := 1;\nEND;\n/\nSELECT 2 FROM dual;"
        texts = _texts(script, dialect="oracle")
        assert texts == ["CREATE OR REPLACE PROCEDURE p IS\n  v NUMBER;\nBEGIN\n  v := 1;\nEND;", "SELECT 2 FROM dual"]


class TestPostgreSQL:
    def test_dollar_quoted_function(self) -> None:
        script = (
            "CREATE FUNCTION f() RETURNS int AS $$\n"
            "BEGIN\n"
            "  IF true THEN\n"
            "    RETURN 1;\n"
            "  END IF;\n"
            "  RETURN 0;\n"
            "END;\n"
            "$$ LANGUAGE plpgsql;\n"
            "SELECT f();"
        )
        texts = _texts(script, dialect="postgresql")
        assert len(texts) == 2
        assert texts[0].startswith("CREATE FUNCTION f()")
        assert texts[0].endswith("$$ LANGUAGE plpgsql")
        assert texts[1] == "SELECT f()"

    def test_tagged_dollar_quote(self) -> None:
        script = "DO $body$ BEGIN PERFORM 1; END $body$; SELECT 2;"
        assert _texts(script, dialect="postgresql") == ["DO $body$ BEGIN PERFORM 1; END $body$", "SELECT 2"]


class TestMySQL:
    SCRIPT = "DELIMITER //\nCREATE PROCEDURE p()\nBEGIN\n  SELECT 1;\nEND//\nDELIMITER ;\nSELECT 2;\n"

    def test_delimiter_redefinition(self) -> None:
        elements = parse_all(self.SCRIPT, config=ParseConfig(dialect="mysql"))
        assert [type(e) for e in elements] == [ControlCommand, Statement, ControlCommand, Statement]
        first = elements[0]
        assert isinstance(first, ControlCommand)
        assert first.is_delimiter_redefinition
        assert first.command_id == "delimiter"
        assert first.text == "DELIMITER //"
        assert first.parameter == "//"
        assert elements[1].text == "CREATE PROCEDURE p()\nBEGIN\n  SELECT 1;\nEND"
        assert elements[3].text == "SELECT 2"

    def test_redefinition_does_not_leak_into_next_batch(self) -> None:
        segmenter = StatementSegmenter(ParseConfig(dialect="mysql"))
        segmenter.parse_all("DELIMITER //\nSELECT 1//\n")
        assert [e.text for e in segmenter.parse_all("SELECT 1; SELECT 2;")] == ["SELECT 1", "SELECT 2"]

    def test_single_scan_applies_redefinition(self) -> None:
        script = "DELIMITER //\nSELECT 1; SELECT 2//"
        element = parse_next(script, 0, len(script), 20, config=ParseConfig(dialect="mysql"))
        assert element == Statement("SELECT 1; SELECT 2", 13, 20)


class TestTSQL:
    def test_go_delimiter(self) -> None:
        assert _texts("SELECT 1\nGO\nSELECT 2\nGO\n", dialect="tsql") == ["SELECT 1\n", "SELECT 2\n"]

    def test_end_followed_by_if_statement_closes_block(self) -> None:
        script = "BEGIN\n  IF 1 = 1 BEGIN SELECT 1; END\n  IF 2 = 2 BEGIN SELECT 2; END\nEND;\nSELECT 3;"
        elements = parse_all(script, config=ParseConfig(dialect="tsql"))
        assert [e.text for e in elements] == [
            "BEGIN\n  IF 1 = 1 BEGIN SELECT 1; END\n  IF 2 = 2 BEGIN SELECT 2; END\nEND;",
            "SELECT 3",
        ]
        assert elements[1].offset == script.index("SELECT 3")


class TestBlankLines:
    def test_blank_line_ends_statement(self) -> None:
        config = ParseConfig(blank_line_is_delimiter=True)
        elements = parse_all("SELECT 1\n\nSELECT 2", config=config)
        assert elements == [Statement("SELECT 1", 0, 8), Statement("SELECT 2", 10, 8)]

    def test_comment_line_feed_counts(self) -> None:
        config = ParseConfig(blank_line_is_delimiter=True)
        texts = [e.text for e in parse_all("SELECT 1\n-- note\n\nSELECT 2", config=config)]
        assert texts == ["SELECT 1\n-- note\n", "SELECT 2"]

    def test_blank_line_inside_block(self) -> None:
        config = ParseConfig(blank_line_is_delimiter=True)
        assert len(parse_all("BEGIN\n\n  SELECT 1;\n\nEND;", config=config)) == 1

    def test_disabled_by_default(self) -> None:
        assert _texts("SELECT 1\n\nSELECT 2") == ["SELECT 1\n\nSELECT 2"]


class TestCursor:
    SCRIPT = "SELECT 1; SELECT 2;"

    @pytest.mark.parametrize(
        ("cursor", "expected"),
        [(0, "SELECT 1"), (3, "SELECT 1"), (8, "SELECT 1"), (9, "SELECT 2"), (12, "SELECT 2")],
    )
    def test_statement_at_cursor(self, cursor: int, expected: str) -> None:
        element = parse_next(self.SCRIPT, 0, len(self.SCRIPT), cursor)
        assert element is not None
        assert element.text == expected


class TestControlCommands:
    def test_control_command_in_batch(self) -> None:
        elements = parse_all("@set x = 1\nSELECT ${x};")
        assert elements[0] == ControlCommand("@set x = 1", 0, 10, command_id="set")
        assert elements[1] == Statement("SELECT ${x}", 11, 12)
        assert isinstance(elements[0], ControlCommand)
        assert elements[0].parameter == "x = 1"

    def test_control_command_outside_cursor_is_skipped(self) -> None:
        script = "@set x = 1\nSELECT ${x};"
        element = parse_next(script, 0, len(script), 15)
        assert element == Statement("SELECT ${x}", 11, 12)

    def test_control_command_under_cursor(self) -> None:
        script = "@set x = 1\nSELECT ${x};"
        element = parse_next(script, 0, len(script), 2)
        assert isinstance(element, ControlCommand)

    def test_empty_command(self) -> None:
        elements = parse_all("@\nSELECT 1;")
        assert isinstance(elements[0], ControlCommand)
        assert elements[0].is_empty_command
        assert elements[1].text == "SELECT 1"

    def test_unknown_command_is_script_text(self) -> None:
        assert _texts("@foo bar\nSELECT 1;") == ["@foo bar\nSELECT 1"]

    def test_custom_registry(self) -> None:
        registry = CommandRegistry()
        registry.register(CommandHandler("foo"))
        elements = StatementSegmenter(command_registry=registry).parse_all("@foo bar\nSELECT 1;")
        assert isinstance(elements[0], ControlCommand)
        assert elements[0].command_id == "foo"
        assert elements[0].parameter == "bar"

    def test_control_command_ends_statement(self) -> None:
        elements = parse_all("SELECT 1\n@echo hi\nSELECT 2;")
        assert [type(e) for e in elements] == [Statement, ControlCommand, Statement]
        assert elements[0].text == "SELECT 1\n"


class TestProperties:
    SCRIPT = "SELECT 1;\n  SELECT 2 ;\n-- note\nBEGIN SELECT 3; END;\nSELECT 'x;y'"

    def test_deterministic(self) -> None:
        assert parse_all(self.SCRIPT) == parse_all(self.SCRIPT)

    def test_spans_are_ordered_and_disjoint(self) -> None:
        elements = parse_all(self.SCRIPT)
        assert len(elements) == 4
        position = 0
        for element in elements:
            assert element.offset >= position
            assert self.SCRIPT[element.offset : element.end_offset].startswith(element.text)
            gap = self.SCRIPT[position : element.offset]
            assert not gap.strip()
            position = element.end_offset
        assert not self.SCRIPT[position:].strip()

    def test_comment_before_statement_starts_it(self) -> None:
        elements = parse_all(self.SCRIPT)
        assert elements[2].text == "-- note\nBEGIN SELECT 3; END"

    def test_parameters_extracted_in_batch(self) -> None:
        elements = parse_all("SELECT :a, :a; SELECT ?", extract_parameters=True)
        first, second = elements
        assert isinstance(first, Statement)
        assert isinstance(second, Statement)
        assert [p.text for p in first.parameters] == [":a", ":a"]
        assert first.parameters[1].previous is first.parameters[0]
        assert [p.text for p in second.parameters] == ["?"]

    def test_parameters_not_extracted_by_default(self) -> None:
        elements = parse_all("SELECT :a")
        assert isinstance(elements[0], Statement)
        assert elements[0].parameters == []


class _FakeTokens:
    """Token source replaying a fixed token list."""

    def __init__(self, tokens: "list[Token]") -> None:
        self._tokens = tokens
        self._index = 0
        self.config = ParseConfig()

    def set_range(self, buffer: "TextBuffer | str", offset: int, length: int) -> None:
        self._index = 0

    def next_token(self) -> Token:
        if self._index >= len(self._tokens):
            return Token(TokenKind.EOF, 0, 0)
        token = self._tokens[self._index]
        self._index += 1
        return token

    def evaluation_session(self):
        return nullcontext(self)


class TestFailures:
    def test_fake_source_satisfies_protocol(self) -> None:
        assert isinstance(_FakeTokens([]), TokenSource)

    def test_buffer_failure_returns_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        tokens = _FakeTokens([Token(TokenKind.UNKNOWN, 0, 1), Token(TokenKind.COMMENT, 2, 50)])
        segmenter = StatementSegmenter(tokenizer=tokens)
        with caplog.at_level(logging.WARNING, logger="sqlscript"):
            assert segmenter.parse_next("SELECT", 0, 6, 0) is None
        assert "Can't extract script element" in caplog.text

    def test_buffer_failure_ends_batch(self) -> None:
        tokens = _FakeTokens([Token(TokenKind.UNKNOWN, 0, 1), Token(TokenKind.COMMENT, 2, 50)])
        assert StatementSegmenter(tokenizer=tokens).parse_all("SELECT") == []

    def test_token_before_range_returns_nothing(self) -> None:
        tokens = _FakeTokens([Token(TokenKind.UNKNOWN, 0, 1)])
        assert StatementSegmenter(tokenizer=tokens).parse_next(TextBuffer("SELECT 1"), 2, 8, 2) is None

    def test_negative_range_start_returns_nothing(self) -> None:
        assert parse_next("SELECT 1; SELECT 2;", -3, 5, 0) is None
        assert StatementSegmenter().parse_next("SELECT 1;", -1, 9, 0) is None
