"""Routes a model-requested tool call to its handler and phrases the result."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from ..errors import UnauthenticatedError
from ..llm.base import ToolCall
from .base import ToolContext, ToolErrorKind, ToolResult
from .calendar_tool import SIGN_IN_MESSAGE
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

UNKNOWN_FUNCTION_MESSAGE = "Unknown function requested"


class ToolKind(str, Enum):
    """The tools a model may request."""

    CREATE_EVENT = "create_calendar_event"
    DELETE_EVENT = "delete_calendar_event"
    LIST_EVENTS = "list_calendar_events"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "ToolKind":
        for kind in cls:
            if kind is not cls.UNKNOWN and kind.value == name:
                return kind
        return cls.UNKNOWN


@dataclass
class DispatchOutcome:
    """What happened when one tool call was dispatched."""

    kind: ToolKind
    call: ToolCall
    result: ToolResult
    text: str


def synthesize_reply(kind: ToolKind, result: ToolResult) -> str:
    """
    Turn a tool result into the text shown to the user.

    Args:
        kind: Which tool ran
        result: Its result

    Returns:
        Reply text
    """
    if kind == ToolKind.CREATE_EVENT:
        if result.success:
            return f'Event "{result.message}" created successfully!'
        if result.error_kind == ToolErrorKind.UNAUTHENTICATED:
            return SIGN_IN_MESSAGE
        if result.error:
            return f"Failed to create event: {result.error}"
        return "Failed to create event."

    if kind == ToolKind.DELETE_EVENT:
        if result.success:
            return "Event deleted successfully."
        if result.error_kind == ToolErrorKind.UNAUTHENTICATED:
            return SIGN_IN_MESSAGE
        if result.error:
            return f"Failed to delete event: {result.error}"
        return "Failed to delete event."

    if kind == ToolKind.LIST_EVENTS:
        return result.message or result.error or "❌ Error fetching events"

    return UNKNOWN_FUNCTION_MESSAGE


class ToolDispatcher:
    """Executes at most one tool call per model turn."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(
        self,
        tool_calls: Union[ToolCall, Sequence[ToolCall]],
        context: ToolContext,
    ) -> DispatchOutcome:
        """
        Execute the first requested tool call.

        Extra calls in the same model turn are logged and ignored. Handler
        exceptions are folded into a failed result.

        Args:
            tool_calls: One call or the calls from a model turn (non-empty)
            context: User and credential the tool acts for

        Returns:
            DispatchOutcome with the reply text
        """
        if isinstance(tool_calls, ToolCall):
            calls = [tool_calls]
        else:
            calls = list(tool_calls)
        if not calls:
            raise ValueError("dispatch requires at least one tool call")

        call = calls[0]
        if len(calls) > 1:
            ignored = ", ".join(extra.name for extra in calls[1:])
            logger.warning(f"Model requested {len(calls)} tool calls; honoring {call.name}, ignoring {ignored}")

        kind = ToolKind.from_name(call.name)
        tool = self.registry.get_tool(call.name) if kind != ToolKind.UNKNOWN else None

        if tool is None:
            logger.warning(f"Unknown function requested: {call.name}")
            result = ToolResult.failure(
                ToolErrorKind.UNKNOWN_TOOL,
                error=f"Unknown tool: {call.name}",
            )
            return DispatchOutcome(ToolKind.UNKNOWN, call, result, UNKNOWN_FUNCTION_MESSAGE)

        logger.info(f"Dispatching {call.name} for user {context.user_id}")
        logger.debug(f"Tool arguments: {call.arguments}")

        try:
            result = await tool.execute(context, **(call.arguments or {}))
        except UnauthenticatedError:
            result = ToolResult.failure(ToolErrorKind.UNAUTHENTICATED, error=SIGN_IN_MESSAGE, message=SIGN_IN_MESSAGE)
        except Exception as e:
            logger.error(f"Tool {call.name} raised: {e}", exc_info=True)
            result = ToolResult.failure(ToolErrorKind.REMOTE_ERROR)

        if not result.success:
            logger.info(f"Tool {call.name} failed ({result.error_kind}): {result.error}")

        return DispatchOutcome(kind, call, result, synthesize_reply(kind, result))
