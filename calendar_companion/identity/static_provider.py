"""Identity provider backed by fixed values."""

import logging
from typing import Optional

from .base import IdentityProvider, UserIdentity

logger = logging.getLogger(__name__)


class StaticIdentityProvider(IdentityProvider):
    """Identity taken from configuration, switchable at runtime."""

    def __init__(self, user_id: Optional[str] = None, access_token: Optional[str] = None):
        """
        Initialize provider.

        Args:
            user_id: Signed-in user, or None to start signed out
            access_token: Calendar bearer token, if any
        """
        self._identity: Optional[UserIdentity] = None
        if user_id:
            self._identity = UserIdentity(user_id=user_id, bearer_credential=access_token or None)

    def current_user(self) -> Optional[UserIdentity]:
        return self._identity

    def sign_in(self, user_id: str, access_token: Optional[str] = None) -> UserIdentity:
        """Replace the signed-in user."""
        self._identity = UserIdentity(user_id=user_id, bearer_credential=access_token or None)
        logger.info(f"Signed in as {user_id} (calendar access: {'yes' if access_token else 'no'})")
        return self._identity

    def sign_out(self) -> None:
        if self._identity:
            logger.info(f"Signed out {self._identity.user_id}")
        self._identity = None
