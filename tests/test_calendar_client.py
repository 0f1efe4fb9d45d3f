"""Tests for the Google Calendar client."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from calendar_companion.calendar.client import GoogleCalendarClient, parse_http_error
from calendar_companion.errors import RemoteError


def http_error(status, body):
    content = json.dumps(body).encode("utf-8") if not isinstance(body, bytes) else body
    return HttpError(SimpleNamespace(status=status, reason="error"), content)


def test_parse_http_error_reads_provider_message():
    """Test that error.message from the body is kept."""
    error = parse_http_error(http_error(404, {"error": {"code": 404, "message": "Not Found"}}))

    assert isinstance(error, RemoteError)
    assert error.message == "Not Found"
    assert error.status == 404


def test_parse_http_error_without_json_body():
    """Test a body that is not JSON."""
    error = parse_http_error(http_error(500, b"<html>oops</html>"))

    assert error.message is None
    assert error.status == 500
    assert str(error) == "Remote request failed"


@pytest.fixture
def client():
    client = GoogleCalendarClient("token", calendar_id="work")
    client._service = MagicMock()
    return client


@pytest.mark.asyncio
async def test_insert_uses_calendar_id(client):
    """Test insert request wiring."""
    events = client._service.events.return_value
    events.insert.return_value.execute.return_value = {"id": "e1", "summary": "Gym"}

    created = await client.insert({"summary": "Gym"})

    assert created["id"] == "e1"
    events.insert.assert_called_once_with(calendarId="work", body={"summary": "Gym"})


@pytest.mark.asyncio
async def test_list_upcoming_params(client):
    """Test that listing expands recurring events in start order."""
    events = client._service.events.return_value
    events.list.return_value.execute.return_value = {"items": [{"id": "e1"}]}

    items = await client.list_upcoming("2026-05-01T00:00:00Z", max_results=5, time_zone="Asia/Tokyo")

    assert items == [{"id": "e1"}]
    events.list.assert_called_once_with(
        calendarId="work",
        timeMin="2026-05-01T00:00:00Z",
        maxResults=5,
        singleEvents=True,
        orderBy="startTime",
        timeZone="Asia/Tokyo",
    )


@pytest.mark.asyncio
async def test_list_upcoming_empty_result(client):
    """Test a response without items."""
    client._service.events.return_value.list.return_value.execute.return_value = {}

    assert await client.list_upcoming("2026-05-01T00:00:00Z") == []


@pytest.mark.asyncio
async def test_http_errors_become_remote_errors(client):
    """Test that provider failures surface as RemoteError."""
    request = client._service.events.return_value.delete.return_value
    request.execute.side_effect = http_error(410, {"error": {"message": "Resource has been deleted"}})

    with pytest.raises(RemoteError) as excinfo:
        await client.delete("e1")

    assert excinfo.value.status == 410
    assert excinfo.value.message == "Resource has been deleted"
