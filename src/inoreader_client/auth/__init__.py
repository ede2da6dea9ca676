"""Authentication module for the Inoreader client.

Provides the token manager, the credentials it hands out, and the httpx hook
that attaches them to API requests.

Usage:
    from inoreader_client.auth import TokenManager

    manager = TokenManager.from_settings(settings)
    credential = await manager.get_valid_token()
"""

from .credential import Credential
from .flows import CredentialFlow, RefreshableFlow
from .manager import TokenManager
from .request_auth import TokenAuth

__all__ = [
    "Credential",
    "CredentialFlow",
    "RefreshableFlow",
    "TokenManager",
    "TokenAuth",
]
