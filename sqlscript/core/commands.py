"""Registry of client-side control command handlers.

The segmenter only needs to know whether a directive names a known command; a
directive without a registered handler is treated as ordinary script text.
Executing the commands is left to the tool embedding this library.
"""

import threading
from typing import Optional

from mypy_extensions import mypyc_attr

from sqlscript.core.lexer import DELIMITER_COMMAND_ID

__all__ = ("CommandHandler", "CommandRegistry", "get_command_registry")


@mypyc_attr(allow_interpreted_subclasses=True)
class CommandHandler:
    """Descriptor of one control command."""

    __slots__ = ("command_id", "description")

    def __init__(self, command_id: str, description: str = "") -> None:
        self.command_id = command_id.lower()
        self.description = description

    def __repr__(self) -> str:
        return f"CommandHandler({self.command_id!r})"


BUILTIN_HANDLERS = (
    CommandHandler("set", "Define a script variable"),
    CommandHandler("unset", "Remove a script variable"),
    CommandHandler("echo", "Print a message"),
    CommandHandler("include", "Execute another script file"),
    CommandHandler(DELIMITER_COMMAND_ID, "Redefine the statement delimiter"),
)


@mypyc_attr(allow_interpreted_subclasses=False)
class CommandRegistry:
    __slots__ = ("_handlers", "_lock")

    def __init__(self, handlers: "tuple[CommandHandler, ...]" = BUILTIN_HANDLERS) -> None:
        self._handlers: dict[str, CommandHandler] = {handler.command_id: handler for handler in handlers}
        self._lock = threading.Lock()

    def register(self, handler: CommandHandler) -> None:
        with self._lock:
            self._handlers[handler.command_id] = handler

    def unregister(self, command_id: str) -> None:
        with self._lock:
            self._handlers.pop(command_id.lower(), None)

    def get_command_handler(self, command_id: Optional[str]) -> Optional[CommandHandler]:
        if not command_id:
            return None
        return self._handlers.get(command_id.lower())

    def command_ids(self) -> "list[str]":
        return sorted(self._handlers)


_registry: Optional[CommandRegistry] = None
_registry_lock = threading.Lock()


def get_command_registry() -> CommandRegistry:
    """Process-wide registry used when the caller supplies none."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = CommandRegistry()
    return _registry
