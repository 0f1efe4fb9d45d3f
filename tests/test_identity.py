"""Tests for identity providers."""

import pytest

from calendar_companion.identity.base import IdentityProvider, UserIdentity
from calendar_companion.identity.google_oauth import GoogleOAuthIdentityProvider
from calendar_companion.identity.static_provider import StaticIdentityProvider


def test_static_provider_signed_out_by_default():
    """Test a provider without a user."""
    assert StaticIdentityProvider().current_user() is None


def test_static_provider_with_token():
    """Test a configured user and token."""
    provider = StaticIdentityProvider(user_id="alice", access_token="token")

    assert provider.current_user() == UserIdentity(user_id="alice", bearer_credential="token")


def test_static_provider_empty_token_means_no_calendar_access():
    """Test that an empty token is treated as absent."""
    provider = StaticIdentityProvider(user_id="alice", access_token="")

    assert provider.current_user().bearer_credential is None


def test_static_provider_sign_in_and_out():
    """Test switching users at runtime."""
    provider = StaticIdentityProvider()

    identity = provider.sign_in("bob", access_token="t2")
    assert provider.current_user() is identity

    provider.sign_out()
    assert provider.current_user() is None


def test_oauth_provider_without_token_cache(tmp_path):
    """Test that a missing token leaves the user without calendar access."""
    provider = GoogleOAuthIdentityProvider("alice", token_path=str(tmp_path / "token.json"))

    assert provider.current_user() == UserIdentity(user_id="alice", bearer_credential=None)
    assert provider.authorize() is False


def test_oauth_provider_ignores_unreadable_cache(tmp_path):
    """Test that a corrupt token file is skipped."""
    token_path = tmp_path / "token.json"
    token_path.write_text("{not json", encoding="utf-8")

    provider = GoogleOAuthIdentityProvider("alice", token_path=str(token_path))

    assert provider.current_user().bearer_credential is None


def test_oauth_provider_sign_out(tmp_path):
    """Test sign out forgets the user."""
    provider = GoogleOAuthIdentityProvider("alice", token_path=str(tmp_path / "token.json"))

    provider.sign_out()

    assert provider.current_user() is None


def test_oauth_provider_sign_in_with_token(tmp_path):
    """Test signing back in with a token supplied by the caller."""
    provider = GoogleOAuthIdentityProvider("alice", token_path=str(tmp_path / "token.json"))
    provider.sign_out()

    identity = provider.sign_in("bob", access_token="fresh")

    assert identity == UserIdentity(user_id="bob", bearer_credential="fresh")
    assert provider.current_user() == identity


def test_base_provider_sign_in_unsupported():
    """Test providers that cannot switch users."""

    class FixedProvider(IdentityProvider):
        def current_user(self):
            return None

    with pytest.raises(NotImplementedError):
        FixedProvider().sign_in("alice")
