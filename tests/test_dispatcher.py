"""Tests for tool dispatch and reply synthesis."""

import pytest

from calendar_companion.errors import RemoteError
from calendar_companion.tools.base import (
    BaseTool,
    ToolContext,
    ToolDescriptor,
    ToolErrorKind,
    ToolResult,
)
from calendar_companion.tools.dispatcher import (
    UNKNOWN_FUNCTION_MESSAGE,
    ToolDispatcher,
    ToolKind,
    synthesize_reply,
)
from calendar_companion.tools.registry import ToolRegistry

from conftest import FakeCalendarClient, tool_call


class ExplodingTool(BaseTool):
    """Tool whose handler raises."""

    def __init__(self):
        super().__init__(ToolDescriptor(name="list_calendar_events", description="boom"))

    async def execute(self, context, **kwargs):
        raise RuntimeError("boom")


@pytest.fixture
def context():
    return ToolContext(user_id="alice", bearer_credential="token", timezone="UTC")


def make_dispatcher(client: FakeCalendarClient) -> ToolDispatcher:
    registry = ToolRegistry()
    registry.initialize_tools(client_factory=client.factory)
    return ToolDispatcher(registry)


def test_tool_kind_from_name():
    """Test mapping names to the closed set of kinds."""
    assert ToolKind.from_name("create_calendar_event") == ToolKind.CREATE_EVENT
    assert ToolKind.from_name("delete_calendar_event") == ToolKind.DELETE_EVENT
    assert ToolKind.from_name("list_calendar_events") == ToolKind.LIST_EVENTS
    assert ToolKind.from_name("send_email") == ToolKind.UNKNOWN
    assert ToolKind.from_name("unknown") == ToolKind.UNKNOWN
    assert ToolKind.from_name(None) == ToolKind.UNKNOWN


@pytest.mark.asyncio
async def test_create_reply(context, calendar_client):
    """Test the reply after creating an event."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(
        tool_call(
            "create_calendar_event",
            event_name="Dentist",
            start_time="2026-05-01T10:00:00Z",
            end_time="2026-05-01T11:00:00Z",
        ),
        context,
    )

    assert outcome.kind == ToolKind.CREATE_EVENT
    assert outcome.text == 'Event "Dentist" created successfully!'


@pytest.mark.asyncio
async def test_create_failure_reply(context):
    """Test the reply when the provider rejects the event."""
    client = FakeCalendarClient(error=RemoteError("Bad time", status=400))
    dispatcher = make_dispatcher(client)

    outcome = await dispatcher.dispatch(
        tool_call("create_calendar_event", event_name="X", start_time="a", end_time="b"),
        context,
    )

    assert outcome.text == "Failed to create event: Bad time"
    assert not outcome.result.success


@pytest.mark.asyncio
async def test_create_signed_out_reply(calendar_client):
    """Test the sign-in reply."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(
        tool_call("create_calendar_event", event_name="X", start_time="a", end_time="b"),
        ToolContext(user_id="alice"),
    )

    assert outcome.text == "🔒 Please sign in with Google first"


@pytest.mark.asyncio
async def test_delete_replies(context):
    """Test the replies after deleting an event."""
    client = FakeCalendarClient(events=[{"id": "evt-1", "summary": "Gym"}])
    dispatcher = make_dispatcher(client)

    ok = await dispatcher.dispatch(tool_call("delete_calendar_event", event_id="evt-1"), context)
    missing = await dispatcher.dispatch(tool_call("delete_calendar_event", event_id="evt-1"), context)

    assert ok.text == "Event deleted successfully."
    assert missing.text == "Failed to delete event: Not Found"


@pytest.mark.asyncio
async def test_list_reply_is_tool_text(context, calendar_client):
    """Test that the listing text is passed through."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(tool_call("list_calendar_events"), context)

    assert outcome.text == "📅 No upcoming events found"


@pytest.mark.asyncio
async def test_unknown_tool(context, calendar_client):
    """Test that unknown names never reach a handler."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(tool_call("send_email", to="bob"), context)

    assert outcome.kind == ToolKind.UNKNOWN
    assert outcome.text == UNKNOWN_FUNCTION_MESSAGE
    assert outcome.result.error_kind == ToolErrorKind.UNKNOWN_TOOL


@pytest.mark.asyncio
async def test_only_first_call_is_honored(context, calendar_client, caplog):
    """Test that extra calls in one model turn are ignored."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(
        [
            tool_call("list_calendar_events", call_id="a"),
            tool_call("create_calendar_event", call_id="b", event_name="X", start_time="s", end_time="e"),
        ],
        context,
    )

    assert outcome.call.id == "a"
    assert calendar_client.inserted == []
    assert "ignoring create_calendar_event" in caplog.text


@pytest.mark.asyncio
async def test_handler_exception_becomes_failure(context):
    """Test that a raising handler yields a failed outcome."""
    registry = ToolRegistry()
    registry.register_tool(ExplodingTool())

    outcome = await ToolDispatcher(registry).dispatch(tool_call("list_calendar_events"), context)

    assert not outcome.result.success
    assert outcome.text == "❌ Error fetching events"


@pytest.mark.asyncio
async def test_unexpected_arguments_become_failure(context, calendar_client):
    """Test that a call the handler cannot accept does not raise."""
    dispatcher = make_dispatcher(calendar_client)

    outcome = await dispatcher.dispatch(tool_call("list_calendar_events", context="oops"), context)

    assert not outcome.result.success


@pytest.mark.asyncio
async def test_dispatch_requires_a_call(context, calendar_client):
    """Test that an empty call list is a programming error."""
    with pytest.raises(ValueError):
        await make_dispatcher(calendar_client).dispatch([], context)


def test_synthesize_reply_without_error_text():
    """Test the generic failure texts."""
    failure = ToolResult.failure(ToolErrorKind.REMOTE_ERROR)

    assert synthesize_reply(ToolKind.CREATE_EVENT, failure) == "Failed to create event."
    assert synthesize_reply(ToolKind.DELETE_EVENT, failure) == "Failed to delete event."
