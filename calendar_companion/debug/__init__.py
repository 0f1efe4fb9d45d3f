"""Debug infrastructure for tracing the conversation turn loop."""

from .trace import TraceEventType, TraceEvent, RequestTrace

__all__ = [
    "TraceEventType",
    "TraceEvent",
    "RequestTrace",
]
