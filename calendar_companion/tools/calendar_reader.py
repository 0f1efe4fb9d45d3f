"""Google Calendar tool that lists upcoming events."""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from ..errors import RemoteError, UnauthenticatedError
from .base import ToolContext, ToolDescriptor, ToolErrorKind, ToolResult
from .calendar_tool import SIGN_IN_MESSAGE, CalendarTool, ClientFactory

logger = logging.getLogger(__name__)

NO_EVENTS_MESSAGE = "📅 No upcoming events found"
FETCH_ERROR_MESSAGE = "❌ Error fetching events"

LIST_EVENTS_DESCRIPTOR = ToolDescriptor(
    name="list_calendar_events",
    description="Lists upcoming events from the primary Google Calendar, including their event ids",
)


def _format_boundary(boundary: Dict[str, Any], zone: ZoneInfo) -> str:
    """Render an event start or end; all-day events carry only a date."""
    if boundary.get("dateTime"):
        value = datetime.fromisoformat(boundary["dateTime"].replace("Z", "+00:00"))
        if value.tzinfo is None:
            value = value.replace(tzinfo=zone)
        return value.astimezone(zone).strftime("%a %b %d %Y, %I:%M %p")
    if boundary.get("date"):
        return date.fromisoformat(boundary["date"]).strftime("%a %b %d %Y")
    return "Unknown time"


def format_events(events: List[Dict[str, Any]], zone_name: str = "UTC") -> str:
    """
    Render events as a numbered list.

    Args:
        events: Event resources ordered by start time
        zone_name: IANA zone timed events are shown in

    Returns:
        One block per event, or the no-events message
    """
    if not events:
        return NO_EVENTS_MESSAGE

    zone = ZoneInfo(zone_name)
    blocks = []
    for i, event in enumerate(events, start=1):
        title = event.get("summary") or "Untitled Event"
        start = _format_boundary(event.get("start") or {}, zone)
        end = _format_boundary(event.get("end") or {}, zone)
        location = event.get("location") or "No location"
        block = f"\n{i}. {title}\n     🕒 {start} - {end}\n     📍 {location}"
        if event.get("id"):
            block += f"\n     🆔 {event['id']}"
        blocks.append(block)
    return "\n".join(blocks)


class ListEventsTool(CalendarTool):
    """Lists the next upcoming events on the user's calendar."""

    def __init__(
        self,
        calendar_id: str = "primary",
        client_factory: Optional[ClientFactory] = None,
        max_results: int = 10,
    ):
        super().__init__(LIST_EVENTS_DESCRIPTOR, calendar_id, client_factory)
        self.max_results = max_results

    async def execute(self, context: ToolContext, **kwargs) -> ToolResult:
        """
        List upcoming events.

        The result message is always user-facing text, including when the
        user is signed out or the calendar cannot be read.
        """
        try:
            client = self.get_client(context)
        except UnauthenticatedError:
            return ToolResult(success=True, data=None, message=SIGN_IN_MESSAGE)

        time_min = datetime.now(timezone.utc).isoformat()

        try:
            events = await client.list_upcoming(
                time_min,
                max_results=self.max_results,
                time_zone=context.timezone,
            )
            text = format_events(events, context.timezone)
        except RemoteError as e:
            return ToolResult.failure(
                ToolErrorKind.REMOTE_ERROR,
                error=e.message,
                message=FETCH_ERROR_MESSAGE,
            )
        except Exception as e:
            logger.error(f"Error listing events: {e}", exc_info=True)
            return ToolResult.failure(
                ToolErrorKind.REMOTE_ERROR,
                error=str(e),
                message=FETCH_ERROR_MESSAGE,
            )

        logger.info(f"Listed {len(events)} upcoming events")
        return ToolResult(
            success=True,
            data={"events": events, "count": len(events)},
            message=text,
        )
