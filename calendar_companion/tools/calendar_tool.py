"""Shared plumbing for Google Calendar tools."""

from typing import Callable, Optional

from ..calendar.client import GoogleCalendarClient
from ..errors import UnauthenticatedError
from .base import BaseTool, ToolContext, ToolDescriptor

ClientFactory = Callable[[str, str], GoogleCalendarClient]

SIGN_IN_MESSAGE = "🔒 Please sign in with Google first"


def default_client_factory(bearer_credential: str, calendar_id: str) -> GoogleCalendarClient:
    return GoogleCalendarClient(bearer_credential, calendar_id=calendar_id)


class CalendarTool(BaseTool):
    """Base class for tools that call the calendar with the user's token."""

    def __init__(
        self,
        descriptor: ToolDescriptor,
        calendar_id: str = "primary",
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize calendar tool.

        Args:
            descriptor: Tool descriptor
            calendar_id: Calendar to operate on
            client_factory: Builds a client from (bearer_credential, calendar_id)
        """
        super().__init__(descriptor)
        self.calendar_id = calendar_id
        self.client_factory = client_factory or default_client_factory

    def get_client(self, context: ToolContext) -> GoogleCalendarClient:
        """
        Build a client acting with the caller's credential.

        Raises:
            UnauthenticatedError: If the caller has no bearer credential
        """
        if not context.bearer_credential:
            raise UnauthenticatedError()
        return self.client_factory(context.bearer_credential, self.calendar_id)
