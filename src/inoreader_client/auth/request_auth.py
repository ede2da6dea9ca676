"""httpx authentication hook that attaches the token manager's credential."""

from __future__ import annotations

from typing import AsyncGenerator, Generator
from urllib.parse import urlparse

import httpx

from .manager import TokenManager


class TokenAuth(httpx.Auth):
    """Adds ``Authorization`` (and any extra credential headers) to Inoreader requests.

    Requests to other hosts, or requests that already carry an
    ``Authorization`` header, are sent untouched so credentials never leak to
    third parties.

    Usage:
        auth = TokenAuth(manager)
        async with httpx.AsyncClient(auth=auth) as client:
            await client.get("https://www.inoreader.com/reader/api/0/user-info")
    """

    def __init__(self, manager: TokenManager, base_url: str = "https://www.inoreader.com"):
        self.manager = manager
        parsed = urlparse(base_url)
        self.scheme = parsed.scheme
        self.host = (parsed.hostname or "").lower()

    def applies_to(self, request: httpx.Request) -> bool:
        host = request.url.host.lower()
        return request.url.scheme == self.scheme and (host == self.host or host.endswith("." + self.host))

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if self.applies_to(request) and "Authorization" not in request.headers:
            credential = await self.manager.get_valid_token()
            request.headers["Authorization"] = credential.authorization
            for name, value in credential.headers.items():
                request.headers[name] = value
        yield request

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("TokenAuth requires httpx.AsyncClient")
