"""Google Calendar REST client authorized with a bearer token."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..errors import RemoteError

logger = logging.getLogger(__name__)


def parse_http_error(error: HttpError) -> RemoteError:
    """
    Convert an HttpError into a RemoteError carrying the provider's message.

    Args:
        error: The HttpError exception

    Returns:
        RemoteError with ``error.message`` from the response body when present
    """
    status = getattr(error.resp, "status", None)
    message = None
    try:
        content = error.content.decode("utf-8") if isinstance(error.content, bytes) else error.content
        body = json.loads(content)
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
    except (json.JSONDecodeError, AttributeError, TypeError, UnicodeDecodeError):
        pass
    return RemoteError(message, status=int(status) if status else None)


class GoogleCalendarClient:
    """Insert, delete and list events on one calendar."""

    def __init__(self, bearer_credential: str, calendar_id: str = "primary"):
        """
        Initialize client.

        Args:
            bearer_credential: OAuth access token for the calendar scope
            calendar_id: Calendar to operate on
        """
        self.calendar_id = calendar_id
        self._credentials = Credentials(token=bearer_credential)
        self._service = None

    def _get_service(self):
        """Get or create Google Calendar service."""
        if self._service is None:
            self._service = build(
                "calendar",
                "v3",
                credentials=self._credentials,
                cache_discovery=False,
            )
        return self._service

    async def _execute(self, request, operation: str) -> Any:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            error = parse_http_error(e)
            logger.warning(f"Calendar {operation} failed ({error.status}): {error.message}")
            raise error from e

    async def insert(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Create an event; returns the created event resource."""
        request = self._get_service().events().insert(calendarId=self.calendar_id, body=event)
        return await self._execute(request, "insert")

    async def delete(self, event_id: str) -> None:
        """Delete an event by id."""
        request = self._get_service().events().delete(calendarId=self.calendar_id, eventId=event_id)
        await self._execute(request, "delete")

    async def list_upcoming(
        self,
        time_min: str,
        max_results: int = 10,
        time_zone: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List upcoming events, expanding recurring events into instances.

        Args:
            time_min: RFC 3339 lower bound on event end time
            max_results: Maximum number of events
            time_zone: Optional zone the response times are expressed in

        Returns:
            Event resources ordered by start time
        """
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "timeMin": time_min,
            "maxResults": max_results,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_zone:
            params["timeZone"] = time_zone
        request = self._get_service().events().list(**params)
        result = await self._execute(request, "list")
        return result.get("items", []) if result else []
