"""Token lifecycle manager for Inoreader API access.

Owns the cached token record and decides, under a single lock, whether the
cached credential can be returned as is, must be refreshed, or must be
minted from scratch by the configured credential flow.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable

from ..errors import AuthenticationError
from ..oauth.storage import FileTokenStore, TokenRecord, TokenStore
from .credential import Credential
from .flows import CredentialFlow, RefreshableFlow

if TYPE_CHECKING:
    from ..config import InoreaderSettings
    from ..oauth.client import ConsentPresenter

logger = logging.getLogger(__name__)

EARLY_REFRESH_SECONDS = 300


class TokenManager:
    """Produces a currently valid credential on demand.

    Handles:
    - Loading persisted tokens once, without clobbering newer in-memory ones
    - Full authorization when nothing usable is cached
    - Early refresh of expiring OAuth tokens, falling back to reauthorization
    - Persisting every new token record

    Usage:
        manager = TokenManager(flow, FileTokenStore())
        credential = await manager.get_valid_token()
        headers = {"Authorization": credential.authorization, **credential.headers}
    """

    def __init__(
        self,
        flow: CredentialFlow,
        store: TokenStore,
        early_refresh_seconds: float = EARLY_REFRESH_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.flow = flow
        self.store = store
        self.early_refresh_seconds = early_refresh_seconds
        self._clock = clock
        self._record = TokenRecord()
        # Held across network calls: at most one authorization or refresh in flight.
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: InoreaderSettings,
        store: TokenStore | None = None,
        presenter: ConsentPresenter | None = None,
    ) -> "TokenManager":
        """Create a manager for the flow the settings describe.

        Password login is used when a user email and password are configured,
        the OAuth authorization-code flow otherwise.

        Raises:
            AuthenticationError: If the app id or key is missing
        """
        from ..oauth.client import AuthorizationCodeFlow, OAuth2Parameters
        from ..oauth.password import PasswordFlow, PasswordParameters
        from ..oauth.server import BrowserConsentPresenter

        if not settings.app_configured:
            raise AuthenticationError(
                "Inoreader app not configured. Set INOREADER_APP_ID and INOREADER_APP_KEY.",
                error_code="not_configured",
            )

        flow: CredentialFlow
        if settings.password_configured:
            flow = PasswordFlow(
                PasswordParameters(
                    email=settings.user_email,
                    password=settings.user_password,
                    app_id=settings.app_id,
                    app_key=settings.app_key,
                ),
                base_url=settings.root_url,
                timeout=settings.http_timeout_seconds,
            )
        else:
            flow = AuthorizationCodeFlow(
                OAuth2Parameters(client_id=settings.app_id, client_secret=settings.app_key),
                presenter=presenter or BrowserConsentPresenter(timeout=settings.consent_timeout_seconds),
                redirect_uri=settings.redirect_uri,
                scope=settings.oauth_scope,
                base_url=settings.root_url,
                timeout=settings.http_timeout_seconds,
            )

        return cls(
            flow,
            store or FileTokenStore(settings.token_path),
            early_refresh_seconds=settings.early_refresh_seconds,
        )

    @property
    def cached_record(self) -> TokenRecord:
        """The token record most recently loaded or granted."""
        return self._record

    async def get_valid_token(self) -> Credential:
        """Do whatever it takes to return a credential that is valid now.

        Returns:
            Credential for the ``Authorization`` header and any extra headers

        Raises:
            AuthenticationError: Wrong credentials, denied consent, CSRF failure
            CommunicationError: Network or deserialization failure
        """
        async with self._lock:
            record = self._record

            if not self.flow.has_credential(record):
                logger.debug("Loading saved auth token...")
                loaded = await self.store.load()
                if loaded is not None:
                    record = record.merge_missing(loaded)
                    self._record = record

            should_save = False
            if not self.flow.has_credential(record):
                logger.info("No saved auth token, starting new authorization process...")
                record = record.updated_with(await self.flow.authorize())
                logger.info("Successfully authorized with a new auth token.")
                should_save = True
            elif self._needs_refresh(record):
                record = record.updated_with(await self._refresh_or_reauthorize(record))
                should_save = True

            if should_save:
                self._record = record
                await self.store.save(record)
                logger.debug("Saved auth tokens.")

            return self.flow.credential(record)

    def _needs_refresh(self, record: TokenRecord) -> bool:
        if not isinstance(self.flow, RefreshableFlow) or record.expires_at is None:
            return False
        return record.expires_at - self.early_refresh_seconds <= self._clock()

    async def _refresh_or_reauthorize(self, record: TokenRecord) -> TokenRecord:
        if record.refresh_token is None:
            logger.info("Saved auth token is expiring and has no refresh token, starting new authorization process...")
            return await self.flow.authorize()

        try:
            logger.debug("Saved auth token is too old (expires at %s), refreshing it...", record.expires_at)
            refreshed = await self.flow.refresh(record)
            logger.debug("Successfully refreshed auth token.")
            return refreshed
        except AuthenticationError as e:
            logger.warning("Failed to refresh auth token (%s), starting new authorization process...", e)
            reauthorized = await self.flow.authorize()
            logger.info("Successfully reauthorized with a new auth token.")
            return reauthorized
