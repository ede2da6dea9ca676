"""Two-legged password login for Inoreader.

Logs in with the user's email address and password plus a registered app's
id and key. The resulting token does not expire, so this flow has no refresh
step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from ..auth.credential import Credential
from ..errors import AuthenticationError, CommunicationError
from .client import DEFAULT_BASE_URL, post_form
from .storage import TokenRecord

logger = logging.getLogger(__name__)

USER_AGENT = "Inoreader Android v7.9.6"


@dataclass(frozen=True)
class PasswordParameters:
    """User and app inputs to the password login."""

    email: str
    password: str = field(repr=False)
    app_id: str = ""
    app_key: str = field(default="", repr=False)


class PasswordFlow:
    """Credential flow that exchanges an email and password for a login token."""

    def __init__(
        self,
        parameters: PasswordParameters,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.parameters = parameters
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/accounts/ClientLogin"

    def has_credential(self, record: TokenRecord) -> bool:
        return record.password_token is not None

    def credential(self, record: TokenRecord) -> Credential:
        return Credential.google_login(record.password_token, self.parameters.app_id, self.parameters.app_key)

    async def authorize(self) -> TokenRecord:
        """Log in and return a record holding the new password token.

        Raises:
            AuthenticationError: Wrong email, password, or app credentials
            CommunicationError: Network failure or unexpected response
        """
        response = await post_form(
            self._http_client,
            self.login_url,
            {
                "Email": self.parameters.email,
                "Passwd": self.parameters.password,
                "AppId": str(self.parameters.app_id),
                "AppKey": self.parameters.app_key,
            },
            headers={"User-Agent": USER_AGENT, "Content-Language": "en_US"},
            timeout=self.timeout,
            action="create password auth token",
        )

        status = response.status_code
        if 400 <= status < 500:
            raise AuthenticationError(f"Failed to create password auth token: {status}", status)
        if status != 200:
            raise CommunicationError(f"Failed to create password auth token: {status}", status)

        fields = parse_key_values(response.text)
        token = fields.get("Auth")
        if not token:
            logger.error("Login response did not contain an Auth field (keys: %s)", sorted(fields))
            raise CommunicationError(
                "Invalid login response: missing Auth",
                status,
                details={"response_keys": sorted(fields)},
            )
        return TokenRecord(password_token=token)


def parse_key_values(body: str) -> dict[str, str]:
    """Parse a newline-delimited ``key=value`` body."""
    result: dict[str, str] = {}
    for line in body.strip().splitlines():
        key, sep, value = line.partition("=")
        if sep:
            result[key.strip()] = value.strip()
    return result
