"""inoreader-client - Inoreader API access with managed credentials."""

__version__ = "0.1.0"

from .errors import AuthenticationError, CommunicationError, InoreaderError, RateLimitError
from .config import InoreaderSettings
from .auth import Credential, TokenAuth, TokenManager
from .oauth import AuthorizationCodeFlow, BrowserConsentPresenter, FileTokenStore, PasswordFlow, TokenRecord
from .api import InoreaderClient
from .labels import LabelCache, LabelClassification, ListingChannel

__all__ = [
    "__version__",
    "InoreaderError",
    "AuthenticationError",
    "CommunicationError",
    "RateLimitError",
    "InoreaderSettings",
    "Credential",
    "TokenAuth",
    "TokenManager",
    "AuthorizationCodeFlow",
    "BrowserConsentPresenter",
    "FileTokenStore",
    "PasswordFlow",
    "TokenRecord",
    "InoreaderClient",
    "LabelCache",
    "LabelClassification",
    "ListingChannel",
]
