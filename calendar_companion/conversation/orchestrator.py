"""Turn loop: persist the user's message, ask the model, run at most one tool."""

import asyncio
import logging
from enum import Enum
from typing import Optional, Set, Tuple

from ..debug.trace import RequestTrace, TraceEventType
from ..errors import ModelError
from ..identity.base import UserIdentity
from ..llm.base import BaseLLM
from ..storage.session_store import SessionStore
from ..tools.base import ToolContext
from ..tools.dispatcher import ToolDispatcher
from ..tools.registry import ToolRegistry
from .models import ActiveSession, DisplayMessage, OrchestratorState, ToolResultRef, Turn
from .prompts import MODEL_ERROR_MESSAGE, NO_RESPONSE_MESSAGE, SAVE_FAILED_MESSAGE

logger = logging.getLogger(__name__)


class SubmitStatus(str, Enum):
    """Outcome of a user submission."""

    REJECTED = "rejected"
    SAVE_FAILED = "save_failed"
    COMPLETED = "completed"


class ConversationOrchestrator:
    """
    Drives one exchange per submission.

    A session moves IDLE -> AWAITING_MODEL -> (DISPATCHING_TOOL) -> IDLE.
    Submissions against a session that is not IDLE, or whose id already has
    an exchange running through another handle, are rejected, so at most one
    exchange per session is in flight.
    """

    def __init__(
        self,
        llm: BaseLLM,
        registry: ToolRegistry,
        session_store: SessionStore,
        timezone: str = "UTC",
    ):
        """
        Initialize orchestrator.

        Args:
            llm: Model the history is submitted to
            registry: Tools offered to the model
            session_store: Where histories are persisted
            timezone: IANA zone handed to tools
        """
        self.llm = llm
        self.registry = registry
        self.dispatcher = ToolDispatcher(registry)
        self.session_store = session_store
        self.timezone = timezone
        # (user_id, session_id) of exchanges in flight, whichever handle started them
        self._in_flight: Set[Tuple[str, str]] = set()

    async def _persist(self, session: ActiveSession, trace: Optional[RequestTrace]) -> bool:
        if session.discarded:
            logger.info(f"Session {session.session_id} was deleted; not saving")
            return True
        ok = await self.session_store.save(session.user_id, session.session_id, session.turns)
        if ok:
            session.mark_persisted()
        if trace:
            trace.add_event(
                TraceEventType.PERSIST,
                source="orchestrator",
                target="session_store",
                content_summary=f"Saved {len(session.turns)} turns" if ok else "Save failed",
                metadata={"session_id": session.session_id, "success": ok},
            )
        return ok

    def _set_state(
        self,
        session: ActiveSession,
        state: OrchestratorState,
        trace: Optional[RequestTrace],
    ) -> None:
        session.state = state
        logger.debug(f"Session {session.session_id} -> {state.value}")
        if trace:
            trace.add_event(
                TraceEventType.STATE,
                source="orchestrator",
                target=session.session_id,
                content_summary=state.value,
            )

    async def _await_pending_persist(self, session: ActiveSession) -> None:
        task = session.pending_persist
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except Exception as e:
            logger.warning(f"Background save of session {session.session_id} failed: {e}")
        session.pending_persist = None

    async def submit_user_message(
        self,
        session: Optional[ActiveSession],
        text: str,
        identity: Optional[UserIdentity] = None,
        trace: Optional[RequestTrace] = None,
    ) -> SubmitStatus:
        """
        Run one exchange for a user message.

        The user turn is stored before the model is called. If that save
        fails, the model is never called and a transient notice is shown.

        Args:
            session: Session the message belongs to
            text: Message typed by the user
            identity: Signed-in user; its credential is handed to tools
            trace: Optional request trace

        Returns:
            SubmitStatus
        """
        if not text or not text.strip():
            return SubmitStatus.REJECTED
        if session is None:
            logger.warning("Message submitted without an active session")
            return SubmitStatus.REJECTED
        key = (session.user_id, session.session_id)
        if not session.is_idle or key in self._in_flight:
            logger.info(f"Session {session.session_id} is busy ({session.state.value}); rejecting message")
            return SubmitStatus.REJECTED

        self._in_flight.add(key)
        try:
            return await self._submit(session, text, identity, trace)
        finally:
            self._in_flight.discard(key)

    def is_busy(self, user_id: str, session_id: str) -> bool:
        """Whether an exchange for this session is in flight."""
        return (user_id, session_id) in self._in_flight

    async def _submit(
        self,
        session: ActiveSession,
        text: str,
        identity: Optional[UserIdentity],
        trace: Optional[RequestTrace],
    ) -> SubmitStatus:
        if trace:
            trace.session_id = session.session_id
            trace.add_event(
                TraceEventType.REQUEST,
                source="user",
                target="orchestrator",
                content_summary=f"User message (length: {len(text)})",
            )

        session.notices.clear()
        session.append(Turn.user(text))
        self._set_state(session, OrchestratorState.AWAITING_MODEL, trace)

        await self._await_pending_persist(session)
        if not await self._persist(session, trace):
            session.notices.append(DisplayMessage(text=SAVE_FAILED_MESSAGE, sender="bot"))
            self._set_state(session, OrchestratorState.IDLE, trace)
            if trace:
                trace.complete()
            return SubmitStatus.SAVE_FAILED

        try:
            await self._exchange(session, identity, trace)
        finally:
            await self._persist(session, trace)
            self._set_state(session, OrchestratorState.IDLE, trace)
            if trace:
                trace.complete()

        return SubmitStatus.COMPLETED

    async def _exchange(
        self,
        session: ActiveSession,
        identity: Optional[UserIdentity],
        trace: Optional[RequestTrace],
    ) -> None:
        try:
            response = await self.llm.generate(
                session.turns,
                tools=self.registry.get_schemas(),
                trace=trace,
                source_name="orchestrator",
            )
        except ModelError as e:
            logger.error(f"Model call failed for session {session.session_id}: {e}", exc_info=True)
            if trace:
                trace.add_event(
                    TraceEventType.ERROR,
                    source=self.llm.get_model_name(),
                    target="orchestrator",
                    content_summary=str(e)[:200],
                )
            session.append(Turn.model(MODEL_ERROR_MESSAGE))
            return

        if not response.tool_calls:
            session.append(Turn.model(response.text or NO_RESPONSE_MESSAGE))
            if trace:
                trace.add_event(
                    TraceEventType.RESPONSE,
                    source="orchestrator",
                    target="user",
                    content_summary=f"Model reply (length: {len(response.text or '')})",
                )
            return

        self._set_state(session, OrchestratorState.DISPATCHING_TOOL, trace)
        call = response.tool_calls[0]
        session.append(Turn.model(response.text or "", tool_call=call))

        context = ToolContext(
            user_id=session.user_id,
            bearer_credential=identity.bearer_credential if identity else None,
            timezone=self.timezone,
        )
        outcome = await self.dispatcher.dispatch(response.tool_calls, context)

        if trace:
            trace.add_event(
                TraceEventType.TOOL_CALL,
                source="orchestrator",
                target=call.name,
                content_summary=outcome.text[:200],
                metadata={
                    "kind": outcome.kind.value,
                    "success": outcome.result.success,
                    "ignored_calls": len(response.tool_calls) - 1,
                },
            )

        error_kind = outcome.result.error_kind.value if outcome.result.error_kind else None
        session.append(
            Turn.model(
                outcome.text,
                tool_result=ToolResultRef(
                    call_id=call.id,
                    name=call.name,
                    success=outcome.result.success,
                    error_kind=error_kind,
                ),
            )
        )
