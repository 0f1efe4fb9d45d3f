"""Google Calendar tools that create and delete events."""

import logging
from typing import Optional

from ..errors import RemoteError, UnauthenticatedError
from .base import ToolContext, ToolDescriptor, ToolErrorKind, ToolParameter, ToolResult
from .calendar_tool import SIGN_IN_MESSAGE, CalendarTool, ClientFactory

logger = logging.getLogger(__name__)

TIME_FORMAT_HINT = "in this format 2015-05-28T17:00:00-00:00"

CREATE_EVENT_DESCRIPTOR = ToolDescriptor(
    name="create_calendar_event",
    description="Creates a Google Calendar event and inserts it into the primary calendar",
    parameters={
        "event_name": ToolParameter("string", "Name of the event", required=True),
        "event_description": ToolParameter("string", "Description of the event"),
        "location": ToolParameter("string", "Location of the event"),
        "start_time": ToolParameter("string", f"Starting time of the event {TIME_FORMAT_HINT}", required=True),
        "end_time": ToolParameter("string", f"Ending time of the event {TIME_FORMAT_HINT}", required=True),
    },
)

DELETE_EVENT_DESCRIPTOR = ToolDescriptor(
    name="delete_calendar_event",
    description="Deletes a Google Calendar event from the primary calendar",
    parameters={
        "event_id": ToolParameter("string", "Event identifier", required=True),
    },
)


class CreateEventTool(CalendarTool):
    """Creates an event on the user's calendar."""

    def __init__(
        self,
        calendar_id: str = "primary",
        client_factory: Optional[ClientFactory] = None,
        default_description: str = "No description provided",
    ):
        super().__init__(CREATE_EVENT_DESCRIPTOR, calendar_id, client_factory)
        self.default_description = default_description

    def build_event(self, context: ToolContext, **kwargs) -> dict:
        """Build the insert request body; both ends carry the caller's zone."""
        return {
            "summary": kwargs["event_name"],
            "description": kwargs.get("event_description") or self.default_description,
            "location": kwargs.get("location") or "",
            "start": {
                "dateTime": kwargs["start_time"],
                "timeZone": context.timezone,
            },
            "end": {
                "dateTime": kwargs["end_time"],
                "timeZone": context.timezone,
            },
        }

    async def execute(self, context: ToolContext, **kwargs) -> ToolResult:
        """
        Create a calendar event.

        Args:
            context: Tool context with the bearer credential
            **kwargs: event_name, start_time, end_time and optionally
                event_description and location

        Returns:
            ToolResult whose data is the created event and message its summary
        """
        try:
            client = self.get_client(context)
        except UnauthenticatedError:
            return ToolResult.failure(ToolErrorKind.UNAUTHENTICATED, error=SIGN_IN_MESSAGE)

        missing = self.missing_arguments(kwargs)
        if missing:
            return ToolResult.failure(
                ToolErrorKind.INVALID_ARGUMENTS,
                error=f"Missing required parameter: {', '.join(missing)}",
            )

        event = self.build_event(context, **kwargs)

        try:
            created = await client.insert(event)
        except RemoteError as e:
            return ToolResult.failure(ToolErrorKind.REMOTE_ERROR, error=e.message)
        except Exception as e:
            logger.error(f"Error creating event: {e}", exc_info=True)
            return ToolResult.failure(ToolErrorKind.REMOTE_ERROR)

        summary = (created or {}).get("summary") or event["summary"]
        logger.info(f"Created event '{summary}' ({(created or {}).get('id')})")
        return ToolResult(success=True, data=created, message=summary)


class DeleteEventTool(CalendarTool):
    """Deletes an event from the user's calendar."""

    def __init__(
        self,
        calendar_id: str = "primary",
        client_factory: Optional[ClientFactory] = None,
    ):
        super().__init__(DELETE_EVENT_DESCRIPTOR, calendar_id, client_factory)

    async def execute(self, context: ToolContext, **kwargs) -> ToolResult:
        """
        Delete a calendar event.

        Args:
            context: Tool context with the bearer credential
            **kwargs: event_id

        Returns:
            ToolResult with ``data=True`` on success
        """
        try:
            client = self.get_client(context)
        except UnauthenticatedError:
            return ToolResult.failure(ToolErrorKind.UNAUTHENTICATED, error=SIGN_IN_MESSAGE)

        if self.missing_arguments(kwargs):
            return ToolResult.failure(
                ToolErrorKind.INVALID_ARGUMENTS,
                error="Missing required parameter: event_id",
            )

        event_id = str(kwargs["event_id"])

        try:
            await client.delete(event_id)
        except RemoteError as e:
            return ToolResult.failure(ToolErrorKind.REMOTE_ERROR, error=e.message)
        except Exception as e:
            logger.error(f"Error deleting event: {e}", exc_info=True)
            return ToolResult.failure(ToolErrorKind.REMOTE_ERROR)

        logger.info(f"Deleted event {event_id}")
        return ToolResult(success=True, data=True, message=f"Deleted event {event_id}")
