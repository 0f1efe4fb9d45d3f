"""Shared fakes for the calendar companion tests."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from calendar_companion.errors import NotFoundError, RemoteError
from calendar_companion.llm.base import BaseLLM, LLMResponse, ToolCall
from calendar_companion.storage.base import BlobInfo, BlobStore


class FakeLLM(BaseLLM):
    """Model that replays scripted responses and records what it was sent."""

    def __init__(self, responses: Optional[List[Any]] = None):
        super().__init__()
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        # When set, each call waits for the event before answering
        self.gate: Optional[asyncio.Event] = None

    async def _generate_impl(self, turns, tools=None, **kwargs) -> LLMResponse:
        self.calls.append({"turns": tuple(turns), "tools": tools})
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            return LLMResponse(text="ok")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get_model_name(self) -> str:
        return "fake-model"


class FakeCalendarClient:
    """In-memory stand-in for GoogleCalendarClient."""

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.events = list(events or [])
        self.error = error
        self.inserted: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.list_calls: List[Dict[str, Any]] = []
        self.tokens: List[str] = []

    async def insert(self, event: Dict[str, Any]) -> Dict[str, Any]:
        if self.error:
            raise self.error
        self.inserted.append(event)
        created = dict(event, id=f"evt-{len(self.inserted)}")
        self.events.append(created)
        return created

    async def delete(self, event_id: str) -> None:
        if self.error:
            raise self.error
        if not any(e.get("id") == event_id for e in self.events):
            raise RemoteError("Not Found", status=404)
        self.deleted.append(event_id)
        self.events = [e for e in self.events if e.get("id") != event_id]

    async def list_upcoming(self, time_min: str, max_results: int = 10, time_zone: Optional[str] = None):
        if self.error:
            raise self.error
        self.list_calls.append({"time_min": time_min, "max_results": max_results, "time_zone": time_zone})
        return list(self.events[:max_results])

    def factory(self, bearer_credential: str, calendar_id: str) -> "FakeCalendarClient":
        self.tokens.append(bearer_credential)
        return self


class MemoryBlobStore(BlobStore):
    """Dictionary-backed blob store with switchable failures."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.created: Dict[str, datetime] = {}
        self.updated: Dict[str, datetime] = {}
        self.fail_put = False
        self.fail_get = False
        self.fail_list = False
        self.put_count = 0

    async def ensure_namespace(self) -> None:
        pass

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        if self.fail_put:
            raise OSError("storage unavailable")
        self.put_count += 1
        now = datetime.now(timezone.utc)
        self.blobs[key] = data
        self.created.setdefault(key, now)
        self.updated[key] = now

    async def get(self, key: str) -> bytes:
        if self.fail_get:
            raise OSError("storage unavailable")
        if key not in self.blobs:
            raise NotFoundError(key)
        return self.blobs[key]

    async def list(self, prefix: str, limit: int) -> List[BlobInfo]:
        if self.fail_list:
            raise OSError("storage unavailable")
        infos = [
            BlobInfo(key=key, created_at=self.created[key], updated_at=self.updated[key])
            for key in self.blobs
            if key.startswith(prefix)
        ]
        infos.sort(key=lambda info: info.updated_at, reverse=True)
        return infos[:limit]

    async def delete(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


def tool_call(name: str, call_id: str = "call-1", **arguments) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def calendar_client():
    return FakeCalendarClient()
