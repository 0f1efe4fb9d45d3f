"""Centralized tool registry."""

import logging
from typing import Any, Dict, List, Optional

from .base import BaseTool
from .calendar_reader import ListEventsTool
from .calendar_tool import ClientFactory
from .calendar_writer import CreateEventTool, DeleteEventTool
from ..config.config_schema import CalendarConfig

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Centralized registry for all tools."""

    def __init__(self):
        """Initialize empty tool registry."""
        self._tools: Dict[str, BaseTool] = {}

    def register_tool(self, tool: BaseTool) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: Tool instance to register
        """
        if tool.get_name() in self._tools:
            logger.warning(f"Replacing registered tool: {tool.get_name()}")
        self._tools[tool.get_name()] = tool

    def get_tool(self, name: str) -> Optional[BaseTool]:
        """
        Get a tool by name.

        Args:
            name: Tool name

        Returns:
            Tool instance or None if not found
        """
        return self._tools.get(name)

    def get_all_tools(self) -> List[BaseTool]:
        """
        Get all registered tools.

        Returns:
            List of all registered tools, in registration order
        """
        return list(self._tools.values())

    def get_schemas(self) -> List[Dict[str, Any]]:
        """Function declarations offered to the model, in registration order."""
        return [tool.get_schema() for tool in self._tools.values()]

    def initialize_tools(
        self,
        calendar: Optional[CalendarConfig] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        """
        Register the calendar tools.

        Args:
            calendar: Calendar configuration (defaults apply when omitted)
            client_factory: Optional factory for calendar clients
        """
        calendar = calendar or CalendarConfig()

        self.register_tool(
            CreateEventTool(
                calendar_id=calendar.calendar_id,
                client_factory=client_factory,
                default_description=calendar.default_description,
            )
        )
        self.register_tool(
            DeleteEventTool(
                calendar_id=calendar.calendar_id,
                client_factory=client_factory,
            )
        )
        self.register_tool(
            ListEventsTool(
                calendar_id=calendar.calendar_id,
                client_factory=client_factory,
                max_results=calendar.max_results,
            )
        )
        logger.info(f"Registered tools: {', '.join(self._tools)}")
