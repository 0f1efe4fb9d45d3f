"""Data models for chat sessions and their turns."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import MalformedStateError
from ..llm.base import ToolCall
from .prompts import CHAT_LOADED_MESSAGE, SYSTEM_PROMPT_MARKER

if TYPE_CHECKING:
    import asyncio


class TurnRole(str, Enum):
    """Author of a turn."""

    SYSTEM = "system"
    USER = "user"
    MODEL = "model"


class OrchestratorState(str, Enum):
    """Where a session is in the turn loop."""

    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOL = "dispatching_tool"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ToolResultRef:
    """Links a turn to the tool call it answers."""

    call_id: str
    name: str
    success: bool
    error_kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "call_id": self.call_id,
            "name": self.name,
            "success": self.success,
            "error_kind": self.error_kind,
        }


@dataclass(frozen=True)
class Turn:
    """One immutable entry in a conversation."""

    role: TurnRole
    content: str
    tool_call: Optional[ToolCall] = None
    tool_result: Optional[ToolResultRef] = None
    is_system_prompt: bool = False
    timestamp: datetime = field(default_factory=utcnow)

    @classmethod
    def system(cls, prompt: str) -> "Turn":
        """Create the instruction turn that opens every conversation."""
        return cls(role=TurnRole.SYSTEM, content=prompt, is_system_prompt=True)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role=TurnRole.USER, content=text)

    @classmethod
    def model(
        cls,
        text: str,
        tool_call: Optional[ToolCall] = None,
        tool_result: Optional[ToolResultRef] = None,
    ) -> "Turn":
        return cls(
            role=TurnRole.MODEL,
            content=text,
            tool_call=tool_call,
            tool_result=tool_result,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data: Dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "is_system_prompt": self.is_system_prompt,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.tool_call:
            data["tool_call"] = {
                "id": self.tool_call.id,
                "name": self.tool_call.name,
                "arguments": self.tool_call.arguments,
            }
        if self.tool_result:
            data["tool_result"] = self.tool_result.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Turn":
        """
        Build a turn from its serialized form.

        Also accepts the legacy Gemini-shaped record
        ``{"role": ..., "parts": [{"text": ...}], "metadata": {"isSystemPrompt": ...}}``,
        where the system prompt was stored with role ``user``.

        Raises:
            MalformedStateError: If the record is not a valid turn
        """
        if not isinstance(data, dict):
            raise MalformedStateError(f"Turn must be an object, got {type(data).__name__}")

        if "parts" in data and "content" not in data:
            return cls._from_legacy_dict(data)

        try:
            role = TurnRole(data["role"])
            content = data["content"]
        except (KeyError, ValueError) as e:
            raise MalformedStateError(f"Invalid turn record: {e}") from e

        if not isinstance(content, str):
            raise MalformedStateError("Turn content must be a string")

        tool_call = None
        if data.get("tool_call"):
            raw_call = data["tool_call"]
            if not isinstance(raw_call, dict) or "name" not in raw_call:
                raise MalformedStateError("Invalid tool_call record")
            arguments = raw_call.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise MalformedStateError("tool_call arguments must be an object")
            tool_call = ToolCall(
                id=str(raw_call.get("id", "")),
                name=str(raw_call["name"]),
                arguments=arguments,
            )

        tool_result = None
        if data.get("tool_result"):
            raw_result = data["tool_result"]
            if not isinstance(raw_result, dict) or "name" not in raw_result:
                raise MalformedStateError("Invalid tool_result record")
            tool_result = ToolResultRef(
                call_id=str(raw_result.get("call_id", "")),
                name=str(raw_result["name"]),
                success=bool(raw_result.get("success", False)),
                error_kind=raw_result.get("error_kind"),
            )

        return cls(
            role=role,
            content=content,
            tool_call=tool_call,
            tool_result=tool_result,
            is_system_prompt=bool(data.get("is_system_prompt", False)),
            timestamp=_parse_timestamp(data.get("timestamp")),
        )

    @classmethod
    def _from_legacy_dict(cls, data: Dict[str, Any]) -> "Turn":
        parts = data.get("parts")
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            raise MalformedStateError("Legacy turn has no parts")

        text = parts[0].get("text", "")
        if not isinstance(text, str):
            raise MalformedStateError("Legacy turn text must be a string")

        metadata = data.get("metadata") or {}
        is_system_prompt = bool(metadata.get("isSystemPrompt")) if isinstance(metadata, dict) else False

        if is_system_prompt or text.startswith(SYSTEM_PROMPT_MARKER):
            return cls.system(text)

        role = data.get("role")
        if role == "user":
            return cls.user(text)
        if role == "model":
            return cls.model(text)
        raise MalformedStateError(f"Unknown legacy role: {role!r}")


def _parse_timestamp(value: Any) -> datetime:
    if not value:
        return utcnow()
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as e:
        raise MalformedStateError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_history(turns: Sequence[Turn]) -> None:
    """
    Check the system-turn invariant.

    The first turn must be the only system-prompt turn.

    Raises:
        MalformedStateError: If the invariant does not hold
    """
    if not turns:
        raise MalformedStateError("History is empty")
    first = turns[0]
    if not first.is_system_prompt or first.role != TurnRole.SYSTEM:
        raise MalformedStateError("History must start with the system prompt turn")
    if any(turn.is_system_prompt for turn in turns[1:]):
        raise MalformedStateError("Only the first turn may carry the system prompt")


def turns_to_json(turns: Iterable[Turn]) -> str:
    """Serialize turns to a JSON array."""
    return json.dumps([turn.to_dict() for turn in turns], ensure_ascii=False)


def turns_from_json(text: str) -> List[Turn]:
    """
    Parse a JSON array of turns.

    Raises:
        MalformedStateError: If the text is not a JSON list of valid turns
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedStateError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedStateError("Invalid chat format: expected a list of turns")

    return [Turn.from_dict(item) for item in data]


@dataclass
class SessionSummary:
    """Session entry shown in the session list."""

    session_id: str
    created_at: datetime
    last_updated: datetime

    @property
    def name(self) -> str:
        return f"Chat {self.created_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.session_id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class DisplayMessage:
    """A message as the presentation layer renders it."""

    text: str
    sender: str  # "user" or "bot"

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "sender": self.sender}


def is_hidden_turn(turn: Turn) -> bool:
    """Whether a turn is kept out of the display projection."""
    if turn.is_system_prompt or turn.role == TurnRole.SYSTEM:
        return True
    if not turn.content:
        return True
    return SYSTEM_PROMPT_MARKER in turn.content


def project_display_messages(turns: Iterable[Turn]) -> List[DisplayMessage]:
    """Map a history to display messages, dropping system and empty turns."""
    return [
        DisplayMessage(
            text=turn.content,
            sender="user" if turn.role == TurnRole.USER else "bot",
        )
        for turn in turns
        if not is_hidden_turn(turn)
    ]


@dataclass
class ActiveSession:
    """
    In-memory state of the session a user is chatting in.

    Owned by the SessionManager and handed to the orchestrator. ``turns`` is
    only ever replaced as a whole tuple.
    """

    user_id: str
    session_id: str
    turns: Tuple[Turn, ...]
    last_updated: datetime = field(default_factory=utcnow)
    state: OrchestratorState = OrchestratorState.IDLE
    notices: List[DisplayMessage] = field(default_factory=list)
    pending_persist: Optional["asyncio.Task"] = field(default=None, repr=False)
    # Set once the session is deleted; later saves are skipped
    discarded: bool = False

    @property
    def is_idle(self) -> bool:
        return self.state == OrchestratorState.IDLE

    def append(self, *new_turns: Turn) -> Tuple[Turn, ...]:
        """Replace the history with a copy extended by new_turns."""
        self.turns = self.turns + tuple(new_turns)
        return self.turns

    def mark_persisted(self) -> None:
        self.last_updated = utcnow()

    def display_messages(self) -> List[DisplayMessage]:
        """Projection of the history plus any transient notices."""
        messages = project_display_messages(self.turns)
        if not messages and not self.notices:
            messages = [DisplayMessage(text=CHAT_LOADED_MESSAGE, sender="bot")]
        return messages + list(self.notices)
