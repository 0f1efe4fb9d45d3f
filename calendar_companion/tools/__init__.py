"""Tool system module."""

from .base import BaseTool, ToolContext, ToolErrorKind, ToolResult
from .dispatcher import DispatchOutcome, ToolDispatcher, ToolKind
from .registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolContext",
    "ToolErrorKind",
    "ToolResult",
    "DispatchOutcome",
    "ToolDispatcher",
    "ToolKind",
    "ToolRegistry",
]
