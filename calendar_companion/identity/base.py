"""Identity port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserIdentity:
    """The signed-in user.

    ``bearer_credential`` may be absent even when ``user_id`` is present: the
    user is signed in to the app but has not authorized calendar access.
    """

    user_id: str
    bearer_credential: Optional[str] = None


class IdentityProvider(ABC):
    """Supplies the current user and calendar credential."""

    @abstractmethod
    def current_user(self) -> Optional[UserIdentity]:
        """Get the signed-in user, or None when signed out."""
        pass

    def sign_in(self, user_id: str, access_token: Optional[str] = None) -> UserIdentity:
        """
        Make ``user_id`` the signed-in user.

        Args:
            user_id: User to sign in
            access_token: Calendar bearer token, when the caller already has one

        Returns:
            The new identity
        """
        raise NotImplementedError(f"{type(self).__name__} does not support signing in")

    def sign_out(self) -> None:
        """Forget the signed-in user. Providers without sessions ignore this."""
        pass
