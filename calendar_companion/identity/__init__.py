"""Identity providers."""

from .base import IdentityProvider, UserIdentity
from .static_provider import StaticIdentityProvider

__all__ = ["IdentityProvider", "UserIdentity", "StaticIdentityProvider"]
