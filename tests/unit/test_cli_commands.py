"""CLI command-surface tests."""

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from sqlscript._serialization import decode_json
from sqlscript.cli import get_sqlscript_group
from sqlscript.utils.logging import StructuredFormatter


@pytest.fixture
def script_file(tmp_path: Path) -> Path:
    path = tmp_path / "script.sql"
    path.write_text("@set id = 1\nSELECT * FROM t WHERE id = :id;\nSELECT 2;\n", encoding="utf-8")
    return path


def test_split_json(script_file: Path) -> None:
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(script_file), "--format", "json"])

    assert result.exit_code == 0, result.output
    elements = decode_json(result.output.strip())
    assert [element["type"] for element in elements] == ["ControlCommand", "Statement", "Statement"]
    assert elements[0]["command_id"] == "set"
    assert elements[0]["parameter"] == "id = 1"
    assert elements[1]["text"] == "SELECT * FROM t WHERE id = :id"
    assert [parameter["name"] for parameter in elements[1]["parameters"]] == ["id"]
    assert elements[2]["parameters"] == []


def test_split_json_without_parameters(script_file: Path) -> None:
    result = CliRunner().invoke(
        get_sqlscript_group(), ["split", str(script_file), "--format", "json", "--no-params"]
    )

    assert result.exit_code == 0, result.output
    assert decode_json(result.output.strip())[1]["parameters"] == []


def test_split_keep_delimiters(script_file: Path) -> None:
    result = CliRunner().invoke(
        get_sqlscript_group(), ["split", str(script_file), "--format", "json", "--keep-delimiters"]
    )

    assert result.exit_code == 0, result.output
    assert decode_json(result.output.strip())[2]["text"] == "SELECT 2;"


def test_split_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "paragraphs.sql"
    path.write_text("SELECT 1\n\nSELECT 2\n", encoding="utf-8")
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(path), "--format", "json", "--blank-lines"])

    assert result.exit_code == 0, result.output
    assert [element["text"] for element in decode_json(result.output.strip())] == ["SELECT 1", "SELECT 2\n"]


def test_split_dialect(tmp_path: Path) -> None:
    path = tmp_path / "batch.sql"
    path.write_text("SELECT 1\nGO\nSELECT 2\nGO\n", encoding="utf-8")
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(path), "--dialect", "tsql", "--format", "json"])

    assert result.exit_code == 0, result.output
    assert len(decode_json(result.output.strip())) == 2


def test_split_table(script_file: Path) -> None:
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(script_file)])

    assert result.exit_code == 0, result.output
    assert "Script Elements" in result.output
    assert "3 element(s)" in result.output


def test_split_empty_script(tmp_path: Path) -> None:
    path = tmp_path / "empty.sql"
    path.write_text("-- nothing here\n", encoding="utf-8")
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(path)])

    assert result.exit_code == 0, result.output
    assert "No statements found" in result.output


def test_split_unknown_dialect(script_file: Path) -> None:
    result = CliRunner().invoke(get_sqlscript_group(), ["split", str(script_file), "--dialect", "teradata"])

    assert result.exit_code != 0


def test_dialects() -> None:
    result = CliRunner().invoke(get_sqlscript_group(), ["dialects"])

    assert result.exit_code == 0, result.output
    assert "Dialects" in result.output
    assert "oracle" in result.output


def test_verbose_json_logging(script_file: Path) -> None:
    result = CliRunner().invoke(
        get_sqlscript_group(), ["--verbose", "--log-format", "json", "split", str(script_file), "--format", "json"]
    )

    assert result.exit_code == 0, result.output
    handlers = logging.getLogger("sqlscript").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, StructuredFormatter)


def test_unknown_log_format(script_file: Path) -> None:
    result = CliRunner().invoke(get_sqlscript_group(), ["--log-format", "xml", "split", str(script_file)])

    assert result.exit_code != 0
