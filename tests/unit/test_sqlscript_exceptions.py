from sqlscript.exceptions import (
    BufferAccessError,
    ImproperConfigurationError,
    MissingDependencyError,
    SQLParsingError,
    SQLScriptError,
)


def test_exception_hierarchy():
    """Test exception classes inherit correctly."""
    assert issubclass(ImproperConfigurationError, SQLScriptError)
    assert issubclass(SQLParsingError, SQLScriptError)
    assert issubclass(BufferAccessError, SQLParsingError)
    assert issubclass(BufferAccessError, IndexError)
    assert issubclass(MissingDependencyError, ImportError)


def test_detail_from_first_argument():
    exc = SQLScriptError("Bad script")
    assert exc.detail == "Bad script"
    assert str(exc) == "Bad script"
    assert repr(exc) == "SQLScriptError - Bad script"


def test_explicit_detail():
    exc = SQLScriptError("Split failed", detail="offset 4")
    assert str(exc) == "Split failed offset 4"


def test_parsing_error_default_message():
    assert str(SQLParsingError()) == "Issues parsing SQL script."


def test_buffer_access_error():
    exc = BufferAccessError(12, 3, 10)
    assert (exc.offset, exc.length) == (12, 3)
    assert str(exc) == "Cannot read 3 character(s) at offset 12: buffer length is 10"


def test_missing_dependency_message():
    exc = MissingDependencyError(package="rich_click", install_package="rich-click")
    assert "pip install sqlscript[rich-click]" in str(exc)
    assert "'rich_click'" in str(exc)
