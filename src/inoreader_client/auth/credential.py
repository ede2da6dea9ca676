"""Bearer credentials handed to callers of the token manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Credential:
    """A usable credential: an ``Authorization`` header plus any extra headers.

    Credentials never change once built; when a token is refreshed, callers
    get a new instance.
    """

    scheme: str
    parameter: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def authorization(self) -> str:
        """Value for the ``Authorization`` request header."""
        return f"{self.scheme} {self.parameter}"

    @classmethod
    def bearer(cls, access_token: str) -> "Credential":
        """OAuth2 access token credential."""
        return cls(scheme="Bearer", parameter=access_token)

    @classmethod
    def google_login(cls, auth_token: str, app_id: str, app_key: str) -> "Credential":
        """Password-login credential, which also needs the app id and key on every request."""
        return cls(
            scheme="GoogleLogin",
            parameter=f"auth={auth_token}",
            headers=MappingProxyType({"AppId": str(app_id), "AppKey": app_key}),
        )
