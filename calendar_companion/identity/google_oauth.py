"""Identity provider that obtains a calendar token through Google OAuth."""

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from .base import IdentityProvider, UserIdentity

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


class GoogleOAuthIdentityProvider(IdentityProvider):
    """
    Signs a local user in to Google Calendar with the installed-app flow.

    Tokens are cached in ``token_path`` and refreshed when expired. When no
    valid token can be obtained the user stays signed in without a calendar
    credential.
    """

    def __init__(
        self,
        user_id: str,
        client_secrets_path: Optional[str] = None,
        token_path: str = "data/token.json",
    ):
        """
        Initialize provider.

        Args:
            user_id: Local user identifier
            client_secrets_path: OAuth client secrets JSON downloaded from Google Cloud
            token_path: File caching the authorized user's tokens
        """
        self.user_id: Optional[str] = user_id
        self.client_secrets_path = client_secrets_path
        self.token_path = Path(token_path)
        self._credentials: Optional[Credentials] = None
        self._load_credentials()

    def _load_credentials(self) -> None:
        if not self.token_path.exists():
            return
        try:
            self._credentials = Credentials.from_authorized_user_file(str(self.token_path), SCOPES)
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable token cache {self.token_path}: {e}")

    def _save_credentials(self) -> None:
        if not self._credentials:
            return
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(self._credentials.to_json(), encoding="utf-8")
        os.chmod(self.token_path, 0o600)

    def _refresh_credentials(self) -> bool:
        """Refresh expired credentials; returns whether they are usable."""
        if not self._credentials:
            return False
        if self._credentials.valid:
            return True
        if not (self._credentials.expired and self._credentials.refresh_token):
            return False
        try:
            self._credentials.refresh(Request())
        except Exception as e:
            logger.warning(f"Token refresh failed: {e}")
            return False
        self._save_credentials()
        return True

    def authorize(self) -> bool:
        """
        Run the browser consent flow if no usable token is cached.

        Returns:
            True if a calendar credential is available afterwards
        """
        if self._refresh_credentials():
            return True
        if not self.client_secrets_path:
            logger.warning("No OAuth client secrets configured; calendar access disabled")
            return False
        try:
            flow = InstalledAppFlow.from_client_secrets_file(self.client_secrets_path, SCOPES)
            self._credentials = flow.run_local_server(port=0)
        except Exception as e:
            logger.error(f"Google sign-in failed: {e}", exc_info=True)
            return False
        self._save_credentials()
        return True

    def current_user(self) -> Optional[UserIdentity]:
        if not self.user_id:
            return None
        token = self._credentials.token if self._refresh_credentials() else None
        return UserIdentity(user_id=self.user_id, bearer_credential=token)

    def sign_in(self, user_id: str, access_token: Optional[str] = None) -> UserIdentity:
        """Sign a user back in, reusing the token cache unless a token is given."""
        self.user_id = user_id
        if access_token:
            self._credentials = Credentials(token=access_token)
        else:
            self._load_credentials()
        logger.info(f"Signed in as {user_id}")
        return self.current_user()

    def sign_out(self) -> None:
        """Forget the user for this process; the token cache is kept."""
        self.user_id = None
        self._credentials = None
