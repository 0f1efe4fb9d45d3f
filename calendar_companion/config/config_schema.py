"""Pydantic models for configuration validation."""

import logging
import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

LOCALTIME_PATH = "/etc/localtime"
TIMEZONE_FILE = "/etc/timezone"


def _is_zone(name: str) -> bool:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def local_timezone_name() -> str:
    """
    IANA name of the host's zone.

    Checked in order: the TZ variable, the /etc/localtime link and
    /etc/timezone. Falls back to UTC.
    """
    candidates = [os.environ.get("TZ", "").lstrip(":")]

    localtime = Path(LOCALTIME_PATH)
    if localtime.is_symlink():
        target = str(localtime.resolve())
        if "zoneinfo/" in target:
            candidates.append(target.split("zoneinfo/", 1)[1])

    try:
        candidates.append(Path(TIMEZONE_FILE).read_text(encoding="utf-8").strip())
    except OSError:
        pass

    for name in candidates:
        if name and _is_zone(name):
            return name

    logger.info("Could not detect the local timezone; using UTC")
    return "UTC"


class OpenAIConfig(BaseModel):
    """OpenAI LLM configuration."""

    api_key: str = Field(..., description="OpenAI API key")
    model: str = Field(default="gpt-4o-mini", description="Model name")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Temperature")
    max_tokens: int = Field(default=2048, gt=0, description="Maximum tokens")
    organization_id: Optional[str] = Field(default=None, description="Organization ID")


class GeminiConfig(BaseModel):
    """Gemini LLM configuration."""

    api_key: str = Field(..., description="Gemini API key")
    model: str = Field(default="gemini-2.0-flash", description="Model name")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Temperature")
    max_tokens: int = Field(default=2048, gt=0, description="Maximum tokens")
    safety_settings: Optional[dict] = Field(default=None, description="Safety settings")


class LLMConfig(BaseModel):
    """LLM configuration."""

    provider: str = Field(default="gemini", description="Provider: 'gemini' or 'openai'")
    gemini: Optional[GeminiConfig] = Field(default=None, description="Gemini configuration")
    openai: Optional[OpenAIConfig] = Field(default=None, description="OpenAI configuration")


class StorageConfig(BaseModel):
    """Chat history storage configuration."""

    database_path: str = Field(default="data/chats.db", description="SQLite file backing the blob store")
    list_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of sessions enumerated per user",
    )


class CalendarConfig(BaseModel):
    """Google Calendar configuration."""

    calendar_id: str = Field(default="primary", description="Calendar to operate on")
    max_results: int = Field(default=10, ge=1, le=250, description="Upcoming events listed")
    timezone: str = Field(
        default_factory=local_timezone_name,
        description="IANA timezone attached to created events and used for listings (default: host zone)",
    )
    default_description: str = Field(
        default="No description provided",
        description="Description used when the model omits one",
    )

    @model_validator(mode='after')
    def validate_timezone(self) -> 'CalendarConfig':
        """Validate timezone string using zoneinfo."""
        if not _is_zone(self.timezone):
            raise ValueError(
                f"Invalid timezone: '{self.timezone}'. "
                f"Must be a valid IANA timezone (e.g., 'America/New_York', 'UTC', 'Asia/Tokyo')"
            )
        return self


class IdentityConfig(BaseModel):
    """Identity configuration."""

    user_id: str = Field(..., description="Identifier that namespaces stored chats")
    access_token: Optional[str] = Field(default=None, description="Calendar bearer token")
    client_secrets_path: Optional[str] = Field(
        default=None, description="OAuth client secrets JSON for the interactive sign-in flow"
    )
    token_path: str = Field(default="data/token.json", description="Where OAuth tokens are cached")

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """User id becomes part of storage keys, so it must be a plain segment."""
        v = v.strip()
        if not v or "/" in v:
            raise ValueError(f"Invalid user_id: '{v}'. Must be non-empty and contain no '/'")
        return v


class WebConfig(BaseModel):
    """Web server configuration."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8765, gt=0, lt=65536, description="Bind port")


class AgentConfig(BaseModel):
    """Agent configuration."""

    inject_datetime: bool = Field(
        default=True,
        description="Whether to inject current datetime into the system prompt"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    identity: IdentityConfig = Field(..., description="Identity configuration")
    llm: LLMConfig = Field(..., description="LLM configuration")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage configuration")
    calendar: CalendarConfig = Field(default_factory=CalendarConfig, description="Calendar configuration")
    web: WebConfig = Field(default_factory=WebConfig, description="Web server configuration")
    agent: AgentConfig = Field(default_factory=AgentConfig, description="Agent configuration")

    def validate(self) -> None:
        """Validate configuration consistency."""
        provider_configs = {
            "gemini": self.llm.gemini,
            "openai": self.llm.openai,
        }

        if self.llm.provider not in provider_configs:
            raise ValueError(f"Unknown LLM provider: {self.llm.provider}")

        if not provider_configs[self.llm.provider]:
            raise ValueError(f"{self.llm.provider} configuration is required when provider is '{self.llm.provider}'")
