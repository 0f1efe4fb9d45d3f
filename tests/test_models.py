"""Tests for conversation data models."""

import json
from datetime import datetime, timezone

import pytest

from calendar_companion.conversation.models import (
    ActiveSession,
    DisplayMessage,
    OrchestratorState,
    SessionSummary,
    ToolResultRef,
    Turn,
    TurnRole,
    project_display_messages,
    turns_from_json,
    turns_to_json,
    validate_history,
)
from calendar_companion.conversation.prompts import CHAT_LOADED_MESSAGE, SYSTEM_PROMPT_MARKER
from calendar_companion.errors import MalformedStateError
from calendar_companion.llm.base import ToolCall


def make_history():
    return [
        Turn.system(f"{SYSTEM_PROMPT_MARKER}. Be helpful."),
        Turn.model("New chat started."),
        Turn.user("What's on today?"),
        Turn.model("", tool_call=ToolCall(id="c1", name="list_calendar_events", arguments={})),
        Turn.model(
            "📅 No upcoming events found",
            tool_result=ToolResultRef(call_id="c1", name="list_calendar_events", success=True),
        ),
    ]


def test_turn_factories():
    """Test the role-specific constructors."""
    system = Turn.system("prompt")
    assert system.role == TurnRole.SYSTEM
    assert system.is_system_prompt

    user = Turn.user("hi")
    assert user.role == TurnRole.USER
    assert not user.is_system_prompt
    assert user.timestamp.tzinfo is not None


def test_turn_serialization_preserves_tool_links():
    """Test that tool call and result references survive JSON."""
    history = make_history()
    restored = turns_from_json(turns_to_json(history))

    assert [t.role for t in restored] == [t.role for t in history]
    assert restored[3].tool_call == ToolCall(id="c1", name="list_calendar_events", arguments={})
    assert restored[4].tool_result.call_id == "c1"
    assert restored[4].tool_result.success is True
    assert restored[0].is_system_prompt


def test_turns_to_json_keeps_unicode():
    """Test that emoji are stored as-is."""
    text = turns_to_json([Turn.model("📅 hi")])
    assert "📅" in text


def test_from_dict_legacy_record():
    """Test reading the older parts/metadata record shape."""
    data = [
        {"role": "user", "parts": [{"text": "You are an A.I Calendar Companion..."}], "metadata": {"isSystemPrompt": True}},
        {"role": "model", "parts": [{"text": "New chat started."}]},
        {"role": "user", "parts": [{"text": "Hello"}]},
    ]
    turns = turns_from_json(json.dumps(data))

    assert turns[0].role == TurnRole.SYSTEM
    assert turns[0].is_system_prompt
    assert turns[1].role == TurnRole.MODEL
    assert turns[2].role == TurnRole.USER
    validate_history(turns)


def test_from_dict_legacy_marker_without_metadata():
    """Test that a legacy prompt is recognised by its opening text."""
    turn = Turn.from_dict({"role": "user", "parts": [{"text": f"{SYSTEM_PROMPT_MARKER}. Hi"}]})
    assert turn.is_system_prompt


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        '{"role": "user"}',
        '[{"role": "robot", "content": "x"}]',
        '[{"role": "user", "content": 3}]',
        '[{"role": "user", "content": "x", "timestamp": "yesterday"}]',
        '[{"role": "model", "content": "x", "tool_call": {"arguments": {}}}]',
        '[42]',
    ],
)
def test_turns_from_json_rejects_malformed(text):
    """Test malformed content raises MalformedStateError."""
    with pytest.raises(MalformedStateError):
        turns_from_json(text)


def test_validate_history_requires_single_leading_system_turn():
    """Test the system turn invariant."""
    with pytest.raises(MalformedStateError):
        validate_history([])
    with pytest.raises(MalformedStateError):
        validate_history([Turn.user("hi")])
    with pytest.raises(MalformedStateError):
        validate_history([Turn.system("a"), Turn.user("hi"), Turn.system("b")])

    validate_history(make_history())


def test_project_display_messages_hides_system_and_empty_turns():
    """Test the display projection."""
    messages = project_display_messages(make_history())

    assert messages == [
        DisplayMessage(text="New chat started.", sender="bot"),
        DisplayMessage(text="What's on today?", sender="user"),
        DisplayMessage(text="📅 No upcoming events found", sender="bot"),
    ]


def test_project_display_messages_hides_marker_text():
    """Test that any turn quoting the system prompt is hidden."""
    messages = project_display_messages([Turn.user(f"{SYSTEM_PROMPT_MARKER} leaked")])
    assert messages == []


def test_active_session_append_replaces_tuple():
    """Test that appending produces a new tuple."""
    session = ActiveSession(user_id="u", session_id="s", turns=(Turn.system("p"),))
    before = session.turns

    session.append(Turn.user("a"), Turn.model("b"))

    assert len(before) == 1
    assert len(session.turns) == 3
    assert session.turns is not before
    assert session.state == OrchestratorState.IDLE
    assert session.is_idle


def test_active_session_display_fallback_and_notices():
    """Test the loaded-chat fallback and transient notices."""
    session = ActiveSession(user_id="u", session_id="s", turns=(Turn.system("p"),))
    assert session.display_messages() == [DisplayMessage(text=CHAT_LOADED_MESSAGE, sender="bot")]

    session.append(Turn.user("hello"))
    session.notices.append(DisplayMessage(text="Error saving message", sender="bot"))
    assert session.display_messages() == [
        DisplayMessage(text="hello", sender="user"),
        DisplayMessage(text="Error saving message", sender="bot"),
    ]


def test_session_summary_to_dict():
    """Test the session summary representation."""
    created = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    summary = SessionSummary(session_id="abc", created_at=created, last_updated=created)

    data = summary.to_dict()
    assert data["id"] == "abc"
    assert data["name"].startswith("Chat ")
    assert data["created_at"] == created.isoformat()
