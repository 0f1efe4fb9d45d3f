"""Session lifecycle: bootstrap, create, switch, list and delete chats."""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Set, Tuple

from ..identity.base import IdentityProvider, UserIdentity
from ..storage.session_store import SessionStore
from .models import ActiveSession, DisplayMessage, SessionSummary, Turn, utcnow
from .prompts import GREETING_MESSAGE, get_system_prompt

logger = logging.getLogger(__name__)


def build_initial_history(timezone: str = "UTC", inject_datetime: bool = True) -> Tuple[Turn, ...]:
    """The system prompt turn followed by the greeting."""
    return (
        Turn.system(get_system_prompt(timezone=timezone, inject_datetime=inject_datetime)),
        Turn.model(GREETING_MESSAGE),
    )


class SessionManager:
    """
    Owns the active session and the session list of the signed-in user.

    Storage failures never escape: a session that cannot be read is replaced
    by a new one.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        session_store: SessionStore,
        timezone: str = "UTC",
        inject_datetime: bool = True,
    ):
        """
        Initialize session manager.

        Args:
            identity: Supplies the signed-in user
            session_store: Persistence for chat histories
            timezone: IANA zone injected into new system prompts
            inject_datetime: Whether new system prompts carry the current time
        """
        self.identity = identity
        self.session_store = session_store
        self.timezone = timezone
        self.inject_datetime = inject_datetime

        self.active: Optional[ActiveSession] = None
        self.sessions: List[SessionSummary] = []
        self._background: Set[asyncio.Task] = set()
        # Handles given out, by (user_id, session_id); busy ones must be reused
        self._handles: Dict[Tuple[str, str], ActiveSession] = {}

    def current_user(self) -> Optional[UserIdentity]:
        return self.identity.current_user()

    def _track(self, session: ActiveSession) -> ActiveSession:
        self._handles = {key: s for key, s in self._handles.items() if not s.is_idle}
        self._handles[(session.user_id, session.session_id)] = session
        return session

    def _busy_handle(self, user_id: str, session_id: str) -> Optional[ActiveSession]:
        session = self._handles.get((user_id, session_id))
        if session is not None and not session.is_idle:
            return session
        return None

    def _require_user(self) -> Optional[UserIdentity]:
        user = self.current_user()
        if user is None:
            logger.info("No signed-in user")
        return user

    async def bootstrap(self) -> Optional[ActiveSession]:
        """
        Prepare the UI state for the signed-in user.

        Loads the session list and activates the most recent session, or
        starts a new one when the user has none.

        Returns:
            The active session, or None when nobody is signed in
        """
        user = self.current_user()
        if user is None:
            self.sign_out()
            return None

        try:
            await self.session_store.ensure_namespace()
            self.sessions = await self.session_store.list(user.user_id)

            if not self.sessions:
                logger.info(f"No sessions for user {user.user_id}; starting a new one")
                return await self.new_session()

            known = {summary.session_id for summary in self.sessions}
            if (
                self.active is None
                or self.active.user_id != user.user_id
                or self.active.session_id not in known
            ):
                return await self.switch_session(self.sessions[0].session_id)

            return self.active
        except Exception as e:
            logger.error(f"Error initializing chats: {e}", exc_info=True)
            return await self.new_session()

    async def new_session(self) -> Optional[ActiveSession]:
        """
        Start a new session and make it active immediately.

        The initial history is saved in the background; the orchestrator
        waits for that save before writing the same session.

        Returns:
            The new active session, or None when nobody is signed in
        """
        user = self._require_user()
        if user is None:
            return None

        session_id = str(uuid.uuid4())
        now = utcnow()
        session = ActiveSession(
            user_id=user.user_id,
            session_id=session_id,
            turns=build_initial_history(self.timezone, self.inject_datetime),
            last_updated=now,
        )

        self.sessions = [
            SessionSummary(session_id=session_id, created_at=now, last_updated=now)
        ] + [summary for summary in self.sessions if summary.session_id != session_id]
        self.active = self._track(session)

        task = asyncio.create_task(self._persist_new(session))
        session.pending_persist = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

        logger.info(f"Started session {session_id} for user {user.user_id}")
        return session

    async def _persist_new(self, session: ActiveSession) -> bool:
        ok = await self.session_store.save(session.user_id, session.session_id, session.turns)
        if not ok:
            logger.warning(f"Initial save of session {session.session_id} failed")
        return ok

    async def switch_session(self, session_id: str) -> Optional[ActiveSession]:
        """
        Activate a stored session.

        A session that is missing, unreadable or malformed is replaced by a
        new one.

        Args:
            session_id: Session to activate

        Returns:
            The active session, or None when nobody is signed in
        """
        user = self._require_user()
        if user is None:
            return None

        busy = self._busy_handle(user.user_id, session_id)
        if busy is not None:
            # Reloading would start a second, conflicting history
            logger.info(f"Session {session_id} has an exchange in flight; reusing it")
            self.active = busy
            return busy

        turns = await self.session_store.load(user.user_id, session_id)
        if turns is None:
            logger.warning(f"Session {session_id} could not be loaded; starting a new one")
            return await self.new_session()

        last_updated = utcnow()
        for summary in self.sessions:
            if summary.session_id == session_id:
                last_updated = summary.last_updated
                break

        self.active = self._track(
            ActiveSession(
                user_id=user.user_id,
                session_id=session_id,
                turns=tuple(turns),
                last_updated=last_updated,
            )
        )
        logger.info(f"Switched to session {session_id} ({len(turns)} turns)")
        return self.active

    async def list_sessions(self, refresh: bool = True) -> List[SessionSummary]:
        """
        Get the signed-in user's sessions, most recently updated first.

        Args:
            refresh: Re-read the list from storage

        Returns:
            Session summaries (empty when signed out)
        """
        user = self.current_user()
        if user is None:
            return []
        if refresh:
            await self.flush()
            self.sessions = await self.session_store.list(user.user_id)
        return list(self.sessions)

    async def delete_session(self, session_id: str) -> bool:
        """
        Delete a session.

        Deleting the active session activates the most recent remaining one,
        or a new session when none is left.

        Returns:
            Whether a stored session was removed
        """
        user = self._require_user()
        if user is None:
            return False

        # An in-flight initial save would recreate the session
        await self.flush()
        # A running exchange must not write the session back after deletion
        for handle in (self._handles.pop((user.user_id, session_id), None), self.active):
            if handle is not None and handle.session_id == session_id and handle.user_id == user.user_id:
                handle.discarded = True
        deleted = await self.session_store.delete(user.user_id, session_id)
        self.sessions = [s for s in self.sessions if s.session_id != session_id]

        if self.active is not None and self.active.session_id == session_id:
            self.active = None
            if self.sessions:
                await self.switch_session(self.sessions[0].session_id)
            else:
                await self.new_session()

        return deleted

    def sign_out(self) -> None:
        """Clear in-memory state. Stored sessions are kept."""
        self.identity.sign_out()
        self.active = None
        self.sessions = []
        self._handles = {key: s for key, s in self._handles.items() if not s.is_idle}

    def display_messages(self) -> List[DisplayMessage]:
        """Messages of the active session as the UI shows them."""
        if self.active is None:
            return []
        return self.active.display_messages()

    async def flush(self) -> None:
        """Wait for background saves to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
