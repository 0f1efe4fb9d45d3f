"""System prompt and fixed conversation texts."""

from datetime import datetime
from zoneinfo import ZoneInfo

# Every system prompt starts with this; display filtering relies on it
SYSTEM_PROMPT_MARKER = "You are an A.I Calendar Companion"

SYSTEM_PROMPT = SYSTEM_PROMPT_MARKER + """. The user can talk to you and you have the ability to create, list and delete Google Calendar events.

Current Information:
- Current datetime: {current_datetime}
- Timezone: {timezone}

Tools:
- Every time the user wants to create an event, call create_calendar_event. Use any information the user provides as parameters and fill in a description based on the context. If no date is given, pick the date and duration that best fit the context.
- Times must always use the format 2015-05-28T17:00:00-00:00 (example only).
- To delete an event, first call list_calendar_events, which returns the upcoming events with their title, start and end time, location and event id. Find the matching event and call delete_calendar_event with its id. Never invent an event id.
- If no event matches the user's description, tell the user instead of calling delete_calendar_event.
- Call at most one tool per reply.

After a tool has run, reply with a brief message about the outcome, such as the event that was created or the event that was deleted.
"""

GREETING_MESSAGE = "New chat started. How can I help you with your calendar today?"
CHAT_LOADED_MESSAGE = "Chat loaded. How can I help you today?"
NO_RESPONSE_MESSAGE = "I couldn't generate a response."
MODEL_ERROR_MESSAGE = "Sorry, I encountered an error."
SAVE_FAILED_MESSAGE = "Error saving message"


def get_current_datetime(timezone: str) -> str:
    """
    Get current datetime formatted for prompt injection.

    Args:
        timezone: IANA timezone string (e.g., 'America/New_York', 'UTC')

    Returns:
        ISO 8601 datetime with UTC offset, to the second
    """
    return datetime.now(ZoneInfo(timezone)).isoformat(timespec="seconds")


def inject_template_variables(
    template: str,
    timezone: str = "UTC",
    inject_datetime: bool = True,
) -> str:
    """
    Replace ``{current_datetime}`` and ``{timezone}`` placeholders.

    Args:
        template: Template string with placeholders
        timezone: IANA timezone string for datetime formatting
        inject_datetime: Whether to inject current datetime (if False, keeps the placeholder)

    Returns:
        Template with placeholders replaced by actual values
    """
    replacements = {"timezone": timezone}

    if inject_datetime:
        replacements["current_datetime"] = get_current_datetime(timezone)
    else:
        replacements["current_datetime"] = "{current_datetime}"

    return template.format(**replacements)


def get_system_prompt(timezone: str = "UTC", inject_datetime: bool = True) -> str:
    """Get the system prompt with template variables injected."""
    return inject_template_variables(
        SYSTEM_PROMPT,
        timezone=timezone,
        inject_datetime=inject_datetime,
    )
