"""Application facade wiring identity, sessions and the turn loop together."""

import logging
from typing import Callable, List, Optional

from .config.config_schema import AppConfig
from .conversation.models import ActiveSession, DisplayMessage, SessionSummary
from .conversation.orchestrator import ConversationOrchestrator, SubmitStatus
from .conversation.session_manager import SessionManager
from .debug.trace import RequestTrace
from .identity.base import IdentityProvider
from .identity.static_provider import StaticIdentityProvider
from .llm.base import BaseLLM
from .storage.session_store import SessionStore
from .storage.sqlite_store import SQLiteBlobStore
from .tools.calendar_tool import ClientFactory
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class CalendarCompanion:
    """Everything a chat front end needs."""

    def __init__(
        self,
        identity: IdentityProvider,
        session_manager: SessionManager,
        orchestrator: ConversationOrchestrator,
        on_trace: Optional[Callable[[RequestTrace], None]] = None,
    ):
        """
        Initialize companion.

        Args:
            identity: Supplies the signed-in user
            session_manager: Session lifecycle
            orchestrator: Turn loop
            on_trace: Optional callback receiving each completed request trace
        """
        self.identity = identity
        self.session_manager = session_manager
        self.orchestrator = orchestrator
        self.on_trace = on_trace

    @property
    def active_session(self) -> Optional[ActiveSession]:
        return self.session_manager.active

    @property
    def is_typing(self) -> bool:
        """Whether an exchange is in flight for the active session."""
        session = self.active_session
        if session is None:
            return False
        return not session.is_idle or self.orchestrator.is_busy(session.user_id, session.session_id)

    def is_signed_in(self) -> bool:
        return self.identity.current_user() is not None

    async def bootstrap(self) -> Optional[ActiveSession]:
        return await self.session_manager.bootstrap()

    async def list_sessions(self, refresh: bool = True) -> List[SessionSummary]:
        return await self.session_manager.list_sessions(refresh=refresh)

    async def new_session(self) -> Optional[ActiveSession]:
        return await self.session_manager.new_session()

    async def switch_session(self, session_id: str) -> Optional[ActiveSession]:
        return await self.session_manager.switch_session(session_id)

    async def delete_session(self, session_id: str) -> bool:
        return await self.session_manager.delete_session(session_id)

    async def submit_user_message(self, text: str) -> SubmitStatus:
        """
        Send a message in the active session.

        Returns:
            SubmitStatus; REJECTED when signed out, idle-gated or empty
        """
        identity = self.identity.current_user()
        if identity is None:
            logger.info("Message submitted while signed out")
            return SubmitStatus.REJECTED

        session = self.active_session
        trace = RequestTrace(session_id=session.session_id if session else None)
        status = await self.orchestrator.submit_user_message(session, text, identity, trace=trace)

        if self.on_trace and status != SubmitStatus.REJECTED:
            self.on_trace(trace)
        return status

    def display_messages(self) -> List[DisplayMessage]:
        return self.session_manager.display_messages()

    async def sign_in(self, user_id: str, access_token: Optional[str] = None) -> Optional[ActiveSession]:
        """Sign a user in and open their most recent session."""
        self.identity.sign_in(user_id, access_token=access_token)
        await self.session_manager.flush()
        return await self.bootstrap()

    def sign_out(self) -> None:
        self.session_manager.sign_out()

    async def shutdown(self) -> None:
        """Wait for background saves."""
        await self.session_manager.flush()


def build_identity(config: AppConfig) -> IdentityProvider:
    """
    Create the identity provider described by the configuration.

    A static access token wins over the OAuth flow; without either the user
    is signed in without calendar access.
    """
    identity_config = config.identity
    if identity_config.access_token or not identity_config.client_secrets_path:
        return StaticIdentityProvider(
            user_id=identity_config.user_id,
            access_token=identity_config.access_token,
        )

    from .identity.google_oauth import GoogleOAuthIdentityProvider

    provider = GoogleOAuthIdentityProvider(
        user_id=identity_config.user_id,
        client_secrets_path=identity_config.client_secrets_path,
        token_path=identity_config.token_path,
    )
    provider.authorize()
    return provider


def build_companion(
    config: AppConfig,
    identity: Optional[IdentityProvider] = None,
    llm: Optional[BaseLLM] = None,
    client_factory: Optional[ClientFactory] = None,
) -> CalendarCompanion:
    """
    Wire the full stack from configuration.

    Args:
        config: Application configuration
        identity: Identity provider (built from config when omitted)
        llm: Model (built from config when omitted)
        client_factory: Optional factory for calendar clients

    Returns:
        CalendarCompanion ready to bootstrap
    """
    if llm is None:
        from .llm.factory import create_llm

        llm = create_llm(config)
    if identity is None:
        identity = build_identity(config)

    session_store = SessionStore(
        SQLiteBlobStore(config.storage.database_path),
        list_limit=config.storage.list_limit,
    )

    registry = ToolRegistry()
    registry.initialize_tools(config.calendar, client_factory=client_factory)

    session_manager = SessionManager(
        identity,
        session_store,
        timezone=config.calendar.timezone,
        inject_datetime=config.agent.inject_datetime,
    )
    orchestrator = ConversationOrchestrator(
        llm,
        registry,
        session_store,
        timezone=config.calendar.timezone,
    )

    logger.info(f"Companion ready (model: {llm.get_model_name()}, store: {config.storage.database_path})")
    return CalendarCompanion(identity, session_manager, orchestrator)
