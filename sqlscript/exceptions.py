from typing import Any, Optional

__all__ = (
    "BufferAccessError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "SQLParsingError",
    "SQLScriptError",
)


class SQLScriptError(Exception):
    """Base exception class from which all sqlscript exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLScriptError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLScriptError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlscript[{install_package or package}]' to install sqlscript with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLScriptError):
    """Improper Configuration error.

    This exception is raised when a parse configuration or dialect descriptor holds invalid values.
    """


class SQLParsingError(SQLScriptError):
    """Issues parsing SQL scripts."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL script."
        super().__init__(message)


class BufferAccessError(SQLParsingError, IndexError):
    """Raised when a read falls outside the text buffer."""

    offset: int
    length: int

    def __init__(self, offset: int, length: int, buffer_length: int) -> None:
        self.offset = offset
        self.length = length
        super().__init__(f"Cannot read {length} character(s) at offset {offset}: buffer length is {buffer_length}")
