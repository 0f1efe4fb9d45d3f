"""Request tracing for the conversation turn loop."""

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TraceEventType(Enum):
    """Types of events that can be traced."""
    REQUEST = "request"
    RESPONSE = "response"
    STATE = "state"
    PERSIST = "persist"
    TOOL_CALL = "tool_call"
    LLM_REQUEST = "llm_request"
    LLM_RESPONSE = "llm_response"
    ERROR = "error"


@dataclass
class TraceEvent:
    """Single event in the trace."""

    timestamp: datetime
    event_type: TraceEventType
    source: str
    target: str
    content_summary: str
    duration_ms: Optional[float] = None
    trace_id: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "source": self.source,
            "target": self.target,
            "content_summary": self.content_summary,
            "duration_ms": self.duration_ms,
            "trace_id": self.trace_id,
            "metadata": self.metadata,
        }


@dataclass
class RequestTrace:
    """Trace of one user submission through the orchestrator."""

    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    session_id: Optional[str] = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    events: List[TraceEvent] = field(default_factory=list)
    on_update: Optional[Callable[..., Any]] = field(default=None, repr=False)

    def add_event(
        self,
        event_type: TraceEventType,
        source: str,
        target: str,
        content_summary: str,
        duration_ms: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TraceEvent:
        """Append an event stamped with this trace's id and notify the listener."""
        event = TraceEvent(
            timestamp=datetime.now(),
            event_type=event_type,
            source=source,
            target=target,
            content_summary=content_summary,
            duration_ms=duration_ms,
            trace_id=self.trace_id,
            metadata=metadata or {},
        )
        self.events.append(event)

        if self.on_update:
            self._notify(event)

        return event

    def _notify(self, event: TraceEvent) -> None:
        """Invoke the update callback; callback failures never fail the request."""
        try:
            if inspect.iscoroutinefunction(self.on_update):
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    return
                loop.create_task(self.on_update(self, event))
            else:
                self.on_update(self, event)
        except Exception as e:
            logger.debug(f"Trace callback failed: {e}")

    def events_of(self, event_type: TraceEventType) -> List[TraceEvent]:
        """Get all events of one type, in order."""
        return [e for e in self.events if e.event_type == event_type]

    def complete(self) -> None:
        """Mark the trace as complete."""
        self.end_time = datetime.now()

    def get_duration_ms(self) -> float:
        """Get total trace duration in milliseconds."""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "trace_id": self.trace_id,
            "session_id": self.session_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.get_duration_ms(),
            "event_count": len(self.events),
            "events": [e.to_dict() for e in self.events],
        }
