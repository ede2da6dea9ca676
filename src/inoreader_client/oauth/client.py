"""OAuth 2.0 authorization-code flow for Inoreader apps.

Handles the three-legged flow:
1. Generate a CSRF ``state`` and the consent URL
2. Hand the URL to a consent presenter and wait for the redirect outcome
3. Validate ``state`` and exchange the authorization code for tokens
4. Refresh tokens when they are about to expire

Documentation: https://www.inoreader.com/developers/oauth
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol
from urllib.parse import parse_qs, urlencode

import httpx

from ..auth.credential import Credential
from ..errors import AuthenticationError, CommunicationError
from .storage import TokenRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.inoreader.com"
DEFAULT_SCOPE = "read write"

ACCESS_DENIED_MESSAGE = "Application was denied access to your Inoreader account"


@dataclass(frozen=True)
class OAuth2Parameters:
    """App credentials from the Inoreader app registration."""

    client_id: str
    client_secret: str


@dataclass(frozen=True)
class ConsentOutcome:
    """What the provider sent back to the redirect URI after the consent page.

    Either ``code`` (with the echoed ``state``) or ``error`` is populated.
    """

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    @property
    def success(self) -> bool:
        return self.code is not None and self.error is None

    @classmethod
    def from_query(cls, query: str) -> "ConsentOutcome":
        """Parse the query string of the redirect request."""
        params = parse_qs(query)
        return cls(
            code=params.get("code", [None])[0],
            state=params.get("state", [None])[0],
            error=params.get("error", [None])[0],
            error_description=params.get("error_description", [None])[0],
        )


class ConsentPresenter(Protocol):
    """Shows the consent page to the user and returns the redirect outcome.

    ``finished`` resolves to True once the whole flow succeeded and to False if
    it failed, so a presenter can tear down its callback receiver.
    """

    async def __call__(
        self,
        consent_url: str,
        callback_url: str,
        finished: asyncio.Future[bool],
    ) -> ConsentOutcome: ...


@dataclass
class OAuthTokens:
    """OAuth tokens returned from the token endpoint."""

    access_token: str
    refresh_token: str
    expires_in: int  # seconds
    obtained_at: float = field(default_factory=time.time)

    @property
    def expires_at(self) -> float:
        """Unix timestamp when the access token expires."""
        return self.obtained_at + self.expires_in

    def to_record(self) -> TokenRecord:
        """Convert to storage format."""
        return TokenRecord(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_at=self.expires_at,
        )


async def post_form(
    http_client: httpx.AsyncClient | None,
    url: str,
    data: dict[str, str],
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    action: str = "request auth token",
) -> httpx.Response:
    """POST a form to ``url``; transport failures become CommunicationError.

    Uses ``http_client`` when given, otherwise a short-lived client.
    """
    try:
        if http_client is not None:
            return await http_client.post(url, data=data, headers=headers)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(url, data=data, headers=headers)
    except httpx.RequestError as e:
        logger.error("Network error while trying to %s: %s", action, e)
        raise CommunicationError(f"Failed to {action}: {e}") from e


class AuthorizationCodeFlow:
    """Three-legged OAuth2 credential flow.

    Usage:
        flow = AuthorizationCodeFlow(
            OAuth2Parameters(client_id="1000001234", client_secret="..."),
            presenter=BrowserConsentPresenter(),
            redirect_uri="http://localhost:8080/oauth2/callback",
        )
        record = await flow.authorize()  # shows the consent page
        record = await flow.refresh(record)  # silently renews
    """

    def __init__(
        self,
        parameters: OAuth2Parameters,
        presenter: ConsentPresenter,
        redirect_uri: str,
        scope: str = DEFAULT_SCOPE,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self.parameters = parameters
        self.presenter = presenter
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client
        self._clock = clock

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}/oauth2/auth"

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/oauth2/token"

    # CredentialFlow

    def has_credential(self, record: TokenRecord) -> bool:
        return record.access_token is not None

    def credential(self, record: TokenRecord) -> Credential:
        return Credential.bearer(record.access_token)

    async def authorize(self) -> TokenRecord:
        """Show the consent page, validate the outcome and exchange the code.

        Raises:
            AuthenticationError: Consent denied, CSRF mismatch, or rejected code
            CommunicationError: Network or deserialization failure
        """
        finished: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        expected_state = self.generate_state()
        consent_url = self.get_authorization_url(expected_state)

        try:
            outcome = await self.presenter(consent_url, self.redirect_uri, finished)

            if outcome.code is not None and outcome.state is not None and self.verify_state(expected_state, outcome.state):
                tokens = await self.exchange_code(outcome.code)
                finished.set_result(True)
                return tokens.to_record()
            elif outcome.error is not None:
                if outcome.error == "access_denied":
                    message = ACCESS_DENIED_MESSAGE
                else:
                    message = f"{outcome.error}: {outcome.error_description}"
                raise AuthenticationError(message, error_code=outcome.error)
            else:
                raise AuthenticationError(
                    "CSRF mismatch: state returned from the consent page does not match",
                    error_code="state_mismatch",
                )
        finally:
            if not finished.done():
                finished.set_result(False)

    async def refresh(self, record: TokenRecord) -> TokenRecord:
        tokens = await self.refresh_tokens(record.refresh_token)
        return tokens.to_record()

    # Flow steps

    def generate_state(self) -> str:
        """Generate a random state value (256 bits) for CSRF protection."""
        return secrets.token_urlsafe(32)

    def get_authorization_url(self, state: str) -> str:
        """Build the provider consent URL."""
        params = {
            "client_id": self.parameters.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    @staticmethod
    def verify_state(expected: str, received: str) -> bool:
        """Constant-time comparison of the generated and echoed state."""
        return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))

    async def exchange_code(self, code: str) -> OAuthTokens:
        """Exchange an authorization code for access and refresh tokens."""
        return await self._request_tokens(
            "authorization_code",
            {"code": code, "redirect_uri": self.redirect_uri, "scope": ""},
        )

    async def refresh_tokens(self, refresh_token: str) -> OAuthTokens:
        """Exchange a refresh token for a new access token and refresh token."""
        return await self._request_tokens("refresh_token", {"refresh_token": refresh_token})

    async def _request_tokens(self, grant_type: str, body: dict[str, str]) -> OAuthTokens:
        data = {
            **body,
            "client_id": self.parameters.client_id,
            "client_secret": self.parameters.client_secret,
            "grant_type": grant_type,
        }
        response = await post_form(
            self._http_client,
            self.token_url,
            data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )

        if response.status_code != 200:
            raise self._token_error(response)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Could not decode token response: %s", e)
            raise CommunicationError("Invalid token response: not JSON", response.status_code) from e
        return self._parse_token_response(payload)

    def _token_error(self, response: httpx.Response) -> Exception:
        status = response.status_code
        if not 400 <= status < 500:
            return CommunicationError(f"Token endpoint failed: {status}", status)

        try:
            error_data = response.json() if response.content else {}
        except ValueError as e:
            return CommunicationError(f"Failed to get auth token: {status} with unreadable body", status, details={"cause": str(e)})
        if not isinstance(error_data, dict):
            error_data = {}

        description = error_data.get("error_description")
        return AuthenticationError(
            f"Failed to get auth token: {status} {description or ''}".rstrip(),
            status,
            error_code=error_data.get("error", "token_request_failed"),
            details=error_data,
        )

    def _parse_token_response(self, data: Any) -> OAuthTokens:
        """Parse a token endpoint response.

        Raises:
            CommunicationError: If required fields are missing or not usable
        """
        try:
            for name in ("access_token", "refresh_token"):
                if not isinstance(data[name], str) or not data[name]:
                    raise ValueError(f"{name} must be a non-empty string")
            return OAuthTokens(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
                expires_in=int(data["expires_in"]),
                obtained_at=self._clock(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CommunicationError(
                f"Invalid token response: missing or malformed {e}",
                details={"response_keys": list(data) if isinstance(data, dict) else []},
            ) from e
