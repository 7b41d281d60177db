"""Script elements produced by the segmenter.

Components:
- ScriptElement: span of the script with its extracted text
- Statement: executable SQL statement with its parameters
- ControlCommand: client-side directive such as ``@set`` or ``DELIMITER``
- Parameter: bind parameter or variable found inside a statement
"""

from typing import Any, Optional

from mypy_extensions import mypyc_attr

__all__ = ("ControlCommand", "Parameter", "ScriptElement", "Statement")


@mypyc_attr(allow_interpreted_subclasses=False)
class Parameter:
    """Parameter occurrence inside one statement.

    Attributes:
        ordinal: Position among the statement's parameters (0-indexed)
        text: Placeholder text as written (``:id``, ``?``, ``${var}``)
        name: Variable name without prefix or braces (``id``, ``?``, ``var``)
        is_named: False for the anonymous marker and numbered placeholders (``:1``)
        offset: Offset relative to the statement start
        length: Placeholder length
        previous: Most recent earlier occurrence of the same named parameter
    """

    __slots__ = ("is_named", "length", "name", "offset", "ordinal", "previous", "text")

    def __init__(
        self,
        ordinal: int,
        text: str,
        offset: int,
        length: int,
        name: Optional[str] = None,
        is_named: Optional[bool] = None,
        previous: "Optional[Parameter]" = None,
    ) -> None:
        self.ordinal = ordinal
        self.text = text
        self.offset = offset
        self.length = length
        self.name = name if name is not None else text
        self.is_named = is_named if is_named is not None else (len(text) > 1 and not self.name.isdigit())
        self.previous = previous

    def to_dict(self) -> "dict[str, Any]":
        return {
            "ordinal": self.ordinal,
            "name": self.name,
            "text": self.text,
            "is_named": self.is_named,
            "offset": self.offset,
            "length": self.length,
            "previous": self.previous.ordinal if self.previous is not None else None,
        }

    def __repr__(self) -> str:
        return f"Parameter(ordinal={self.ordinal}, name={self.name!r}, offset={self.offset}, length={self.length})"


class ScriptElement:
    """Span of the script, ``[offset, offset + length)``, with its extracted text."""

    __slots__ = ("length", "offset", "text")

    def __init__(self, text: str, offset: int, length: int) -> None:
        self.text = text
        self.offset = offset
        self.length = length

    @property
    def end_offset(self) -> int:
        return self.offset + self.length

    def to_dict(self) -> "dict[str, Any]":
        return {"type": type(self).__name__, "text": self.text, "offset": self.offset, "length": self.length}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text!r}, offset={self.offset}, length={self.length})"


class Statement(ScriptElement):
    """Executable SQL statement."""

    __slots__ = ("parameters",)

    def __init__(
        self, text: str, offset: int, length: int, parameters: "Optional[list[Parameter]]" = None
    ) -> None:
        super().__init__(text, offset, length)
        self.parameters: list[Parameter] = parameters if parameters is not None else []

    def to_dict(self) -> "dict[str, Any]":
        data = super().to_dict()
        data["parameters"] = [parameter.to_dict() for parameter in self.parameters]
        return data


class ControlCommand(ScriptElement):
    """Client-side directive handled by the tool instead of the database."""

    __slots__ = ("command_id", "is_delimiter_redefinition", "prefix")

    def __init__(
        self,
        text: str,
        offset: int,
        length: int,
        command_id: Optional[str] = None,
        is_delimiter_redefinition: bool = False,
        prefix: str = "@",
    ) -> None:
        super().__init__(text, offset, length)
        self.command_id = command_id
        self.is_delimiter_redefinition = is_delimiter_redefinition
        self.prefix = prefix

    @property
    def is_empty_command(self) -> bool:
        """The directive is only the control prefix (e.g. a lone ``@``)."""
        return self.text.strip() == self.prefix

    @property
    def parameter(self) -> Optional[str]:
        """Text following the command word, e.g. ``x = 1`` for ``@set x = 1``."""
        body = self.text.strip()
        if body.startswith(self.prefix):
            body = body[len(self.prefix) :]
        parts = body.split(None, 1)
        return parts[1].strip() if len(parts) > 1 else None

    def to_dict(self) -> "dict[str, Any]":
        data = super().to_dict()
        data["command_id"] = self.command_id
        data["is_delimiter_redefinition"] = self.is_delimiter_redefinition
        data["parameter"] = self.parameter
        return data
