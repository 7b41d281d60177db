"""Runtime-checkable protocols for the pluggable collaborators of the segmenter."""

from typing import TYPE_CHECKING, Any, ContextManager, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from sqlscript.core.buffer import TextBuffer
    from sqlscript.core.config import ParseConfig
    from sqlscript.core.tokens import Token

__all__ = ("TokenSource",)


@runtime_checkable
class TokenSource(Protocol):
    """Pull-based tokenizer restartable only by re-scanning a range."""

    @property
    def config(self) -> "ParseConfig":
        """Configuration the tokenizer was built for."""
        ...

    def set_range(self, buffer: "Union[TextBuffer, str]", offset: int, length: int) -> None:
        """Restart scanning at ``offset`` for ``length`` characters."""
        ...

    def next_token(self) -> "Token":
        """Next token of the range; an EOF token once the range is exhausted."""
        ...

    def evaluation_session(self) -> ContextManager[Any]:
        """Scope keeping scan-scoped state alive across several scans."""
        ...
