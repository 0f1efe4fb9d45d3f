"""Per-user chat session persistence on top of a blob store."""

import logging
from typing import List, Optional, Sequence

from ..conversation.models import (
    SessionSummary,
    Turn,
    turns_from_json,
    turns_to_json,
    validate_history,
)
from ..errors import MalformedStateError, NotFoundError
from .base import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100
CHAT_PREFIX = "chat-"


def user_prefix(user_id: str) -> str:
    """Key prefix owning all of a user's sessions."""
    return f"user-{user_id}/"


def session_key(user_id: str, session_id: str) -> str:
    """Storage key of one session."""
    return f"{user_prefix(user_id)}{CHAT_PREFIX}{session_id}"


class SessionStore:
    """
    Saves, loads and enumerates chat histories keyed by (user, session).

    Every failure is reported through the return value; nothing raises past
    this class.
    """

    def __init__(self, blob_store: BlobStore, list_limit: int = DEFAULT_LIST_LIMIT):
        """
        Initialize session store.

        Args:
            blob_store: Backing blob store
            list_limit: Maximum number of sessions enumerated per user. Users
                with more sessions only see the most recently updated ones.
        """
        self.blob_store = blob_store
        self.list_limit = list_limit

    async def ensure_namespace(self) -> bool:
        """Make sure the backing container exists."""
        try:
            await self.blob_store.ensure_namespace()
            return True
        except Exception as e:
            logger.error(f"Storage initialization error: {e}", exc_info=True)
            return False

    async def save(self, user_id: str, session_id: str, turns: Sequence[Turn]) -> bool:
        """
        Write a full history, replacing whatever was stored before.

        Args:
            user_id: Owner of the session
            session_id: Session identifier
            turns: Complete history to store

        Returns:
            True if the history was stored
        """
        key = session_key(user_id, session_id)
        try:
            data = turns_to_json(turns).encode("utf-8")
            await self.blob_store.put(key, data, content_type="application/json")
        except Exception as e:
            logger.error(f"Failed to save session {key}: {e}", exc_info=True)
            return False

        logger.debug(f"Saved session {key} ({len(turns)} turns)")
        return True

    async def load(self, user_id: str, session_id: str) -> Optional[List[Turn]]:
        """
        Read a history.

        Missing, unreadable and malformed content all yield None.

        Args:
            user_id: Owner of the session
            session_id: Session identifier

        Returns:
            The stored turns, or None
        """
        key = session_key(user_id, session_id)
        try:
            raw = await self.blob_store.get(key)
        except NotFoundError:
            logger.info(f"Session not found: {key}")
            return None
        except Exception as e:
            logger.error(f"Failed to read session {key}: {e}", exc_info=True)
            return None

        try:
            turns = turns_from_json(raw.decode("utf-8"))
            validate_history(turns)
        except UnicodeDecodeError as e:
            logger.warning(f"Session {key} is not valid UTF-8: {e}")
            return None
        except MalformedStateError as e:
            logger.warning(f"Session {key} is malformed: {e}")
            return None

        return turns

    async def list(self, user_id: str) -> List[SessionSummary]:
        """
        Enumerate a user's sessions, most recently updated first.

        At most ``list_limit`` sessions are returned; hitting the limit is
        logged.
        """
        try:
            blobs = await self.blob_store.list(user_prefix(user_id), self.list_limit)
        except Exception as e:
            logger.error(f"Error loading session list for user {user_id}: {e}", exc_info=True)
            return []

        if len(blobs) >= self.list_limit:
            logger.warning(
                f"Session list for user {user_id} reached the enumeration limit "
                f"of {self.list_limit}; older sessions are not listed"
            )

        summaries = []
        for blob in blobs:
            if not blob.name.startswith(CHAT_PREFIX):
                continue
            summaries.append(
                SessionSummary(
                    session_id=blob.name[len(CHAT_PREFIX):],
                    created_at=blob.created_at,
                    last_updated=blob.updated_at,
                )
            )
        return summaries

    async def delete(self, user_id: str, session_id: str) -> bool:
        """Delete a stored session; returns whether anything was removed."""
        key = session_key(user_id, session_id)
        try:
            return await self.blob_store.delete(key)
        except Exception as e:
            logger.error(f"Failed to delete session {key}: {e}", exc_info=True)
            return False
