"""FastAPI server exposing the companion as a JSON API."""

import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..companion import CalendarCompanion

logger = logging.getLogger(__name__)


class MessageRequest(BaseModel):
    """Body of POST /api/messages."""

    text: str


class SignInRequest(BaseModel):
    """Body of POST /api/auth/sign-in."""

    user_id: str = Field(..., min_length=1, pattern=r"^[^/]+$")
    access_token: Optional[str] = None


class CompanionWebServer:
    """Web server for the chat front end."""

    def __init__(
        self,
        companion: CalendarCompanion,
        host: str = "127.0.0.1",
        port: int = 8765,
    ):
        self.companion = companion
        self.host = host
        self.port = port
        self.app = FastAPI(title="Calendar Companion")
        self._server: Optional[uvicorn.Server] = None

        self._setup_routes()

    def _require_user(self) -> None:
        if not self.companion.is_signed_in():
            raise HTTPException(status_code=401, detail="Not signed in")

    def _state(self) -> Dict[str, Any]:
        session = self.companion.active_session
        return {
            "active_session": session.session_id if session else None,
            "is_typing": self.companion.is_typing,
            "messages": [m.to_dict() for m in self.companion.display_messages()],
        }

    def _setup_routes(self):
        """Configure FastAPI routes."""

        @self.app.on_event("startup")
        async def startup():
            if self.companion.is_signed_in():
                await self.companion.bootstrap()

        @self.app.get("/api/sessions")
        async def list_sessions():
            """Get the signed-in user's sessions."""
            self._require_user()
            if self.companion.active_session is None:
                await self.companion.bootstrap()
            sessions = await self.companion.list_sessions()
            active = self.companion.active_session
            return {
                "active_session": active.session_id if active else None,
                "sessions": [s.to_dict() for s in sessions],
            }

        @self.app.post("/api/sessions")
        async def new_session():
            """Start a new session."""
            self._require_user()
            await self.companion.new_session()
            return self._state()

        @self.app.post("/api/sessions/{session_id}/activate")
        async def activate_session(session_id: str):
            """Switch to a stored session."""
            self._require_user()
            await self.companion.switch_session(session_id)
            return self._state()

        @self.app.delete("/api/sessions/{session_id}")
        async def delete_session(session_id: str):
            """Delete a session."""
            self._require_user()
            deleted = await self.companion.delete_session(session_id)
            return {"deleted": deleted, **self._state()}

        @self.app.get("/api/messages")
        async def get_messages():
            """Get the active session's messages."""
            self._require_user()
            if self.companion.active_session is None:
                await self.companion.bootstrap()
            return self._state()

        @self.app.post("/api/messages")
        async def post_message(request: MessageRequest):
            """Send a message in the active session."""
            self._require_user()
            if self.companion.active_session is None:
                await self.companion.bootstrap()
            status = await self.companion.submit_user_message(request.text)
            return {"status": status.value, **self._state()}

        @self.app.post("/api/auth/sign-in")
        async def sign_in(request: SignInRequest):
            """Sign a user in and open their latest session."""
            try:
                await self.companion.sign_in(request.user_id, access_token=request.access_token)
            except NotImplementedError as e:
                raise HTTPException(status_code=501, detail=str(e))
            return {"signed_in": True, **self._state()}

        @self.app.post("/api/auth/sign-out")
        async def sign_out():
            """Clear the signed-in user's in-memory state."""
            self.companion.sign_out()
            return {"signed_in": False}

    async def start(self) -> None:
        """Start the web server."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        logger.info(f"Serving on {self.get_url()}")
        await self._server.serve()

    async def stop(self) -> None:
        """Stop the web server."""
        await self.companion.shutdown()
        if self._server:
            self._server.should_exit = True

    def get_url(self) -> str:
        return f"http://{self.host}:{self.port}"
