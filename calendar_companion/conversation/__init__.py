"""Conversation state and the turn loop."""

from .models import (
    ActiveSession,
    DisplayMessage,
    OrchestratorState,
    SessionSummary,
    ToolResultRef,
    Turn,
    TurnRole,
)

__all__ = [
    "ActiveSession",
    "DisplayMessage",
    "OrchestratorState",
    "SessionSummary",
    "ToolResultRef",
    "Turn",
    "TurnRole",
]
