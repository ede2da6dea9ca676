"""Credential flows and token persistence for Inoreader.

Provides the OAuth 2.0 authorization-code flow and the password login flow,
plus the token store the token manager persists to.

Usage:
    from inoreader_client.oauth import (
        AuthorizationCodeFlow,
        BrowserConsentPresenter,
        FileTokenStore,
        OAuth2Parameters,
    )

    flow = AuthorizationCodeFlow(
        OAuth2Parameters(client_id="1000001234", client_secret="secret"),
        presenter=BrowserConsentPresenter(),
        redirect_uri="http://localhost:8080/oauth2/callback",
    )
    record = await flow.authorize()
    await FileTokenStore().save(record)
"""

from .client import (
    AuthorizationCodeFlow,
    ConsentOutcome,
    ConsentPresenter,
    OAuth2Parameters,
    OAuthTokens,
)
from .password import PasswordFlow, PasswordParameters
from .server import BrowserConsentPresenter, OAuthCallbackServer
from .storage import FileTokenStore, TokenRecord, TokenStore

__all__ = [
    "AuthorizationCodeFlow",
    "ConsentOutcome",
    "ConsentPresenter",
    "OAuth2Parameters",
    "OAuthTokens",
    "PasswordFlow",
    "PasswordParameters",
    "BrowserConsentPresenter",
    "OAuthCallbackServer",
    "FileTokenStore",
    "TokenRecord",
    "TokenStore",
]
