"""Base tool interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ToolErrorKind(str, Enum):
    """Why a tool failed."""

    UNAUTHENTICATED = "unauthenticated"
    REMOTE_ERROR = "remote_error"
    INVALID_ARGUMENTS = "invalid_arguments"
    UNKNOWN_TOOL = "unknown_tool"


@dataclass
class ToolContext:
    """Who a tool acts for."""

    user_id: str
    bearer_credential: Optional[str] = None
    timezone: str = "UTC"


@dataclass
class ToolResult:
    """Result from tool execution."""

    success: bool
    data: Any
    error: Optional[str] = None
    message: Optional[str] = None
    error_kind: Optional[ToolErrorKind] = None

    @classmethod
    def failure(
        cls,
        kind: ToolErrorKind,
        error: Optional[str] = None,
        message: Optional[str] = None,
    ) -> "ToolResult":
        return cls(success=False, data=None, error=error, message=message, error_kind=kind)


@dataclass
class ToolParameter:
    """One parameter of a tool."""

    type: str
    description: str
    required: bool = False


@dataclass
class ToolDescriptor:
    """Static description of a tool offered to the model."""

    name: str
    description: str
    parameters: Dict[str, ToolParameter] = field(default_factory=dict)

    @property
    def required(self) -> List[str]:
        return [name for name, param in self.parameters.items() if param.required]

    def to_schema(self) -> Dict[str, Any]:
        """JSON-schema function declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    name: {"type": param.type, "description": param.description}
                    for name, param in self.parameters.items()
                },
                "required": self.required,
            },
        }


class BaseTool(ABC):
    """Abstract base class for all tools."""

    descriptor: ToolDescriptor

    def __init__(self, descriptor: ToolDescriptor):
        """
        Initialize tool.

        Args:
            descriptor: Name, description and parameters of the tool
        """
        self.descriptor = descriptor
        self.name = descriptor.name
        self.description = descriptor.description

    @abstractmethod
    async def execute(self, context: ToolContext, **kwargs) -> ToolResult:
        """
        Execute the tool.

        Implementations report failures through the returned ToolResult.

        Args:
            context: User and credential the tool acts for
            **kwargs: Tool-specific parameters

        Returns:
            ToolResult with execution result
        """
        pass

    def get_schema(self) -> Dict[str, Any]:
        """Get the function declaration offered to the model."""
        return self.descriptor.to_schema()

    def missing_arguments(self, kwargs: Dict[str, Any]) -> List[str]:
        """Required parameters absent or empty in kwargs."""
        return [name for name in self.descriptor.required if kwargs.get(name) in (None, "")]

    def get_name(self) -> str:
        """Get tool name."""
        return self.name

    def get_description(self) -> str:
        """Get tool description."""
        return self.description
