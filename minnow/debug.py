"""Debug output routed through a replaceable handler."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable

DebugHandler = Callable[[Any, str], None]


def _default_debug_handler(_arg: Any, message: str) -> None:
    sys.stderr.write(f"DEBUG: {message}\n")


@dataclass
class _HandlerState:
    handler: DebugHandler
    arg: Any = None


_state = _HandlerState(_default_debug_handler)


def debug_str(message: str) -> None:
    """Pass ``message`` to the current debug handler."""
    _state.handler(_state.arg, message)


def debug(fmt: str, *args: Any, **kwargs: Any) -> None:
    """Format a message with ``str.format`` and emit it, unless optimisations are on."""
    if __debug__:
        debug_str(fmt.format(*args, **kwargs))


def set_debug_handler(handler: DebugHandler, arg: Any) -> None:
    """Install ``handler``; it is called as ``handler(arg, message)``."""
    _state.handler = handler
    _state.arg = arg


def reset_debug_handler() -> None:
    """Restore the handler that writes to standard error."""
    _state.handler = _default_debug_handler