"""Shared test fixtures for the inoreader-client test suite."""

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from inoreader_client.config import InoreaderSettings
from inoreader_client.oauth.client import ConsentOutcome
from inoreader_client.oauth.storage import TokenRecord

SAMPLE_APP_ID = "999999999"
SAMPLE_APP_KEY = "app_key_abc"
SAMPLE_REDIRECT_URI = "http://localhost:8080/oauth2/callback"


# ============================================================================
# Mock Response Data
# ============================================================================

MOCK_TAG_LIST = {
    "tags": [
        {"id": "user/1005/state/com.google/starred", "sortid": "FFFFFFFF"},
        {"id": "user/1005/label/Tech", "sortid": "A1", "type": "folder", "unread_count": 12, "unseen_count": 3},
        {
            "id": "user/1005/label/Later",
            "sortid": "B2",
            "type": "tag",
            "unread_count": 4,
            "unseen_count": 0,
            "pinned": 1,
            "article_count": 20,
            "article_count_today": 2,
        },
        {"id": "user/1005/label/Python jobs", "sortid": "C3", "type": "active_search", "unread_count": 7},
    ]
}

MOCK_TOKEN_RESPONSE = {
    "access_token": "jkl",
    "token_type": "Bearer",
    "expires_in": 86400,
    "refresh_token": "mno",
    "scope": "read write",
}

MOCK_USER_INFO = {
    "userId": "1006195123",
    "userName": "jdoe",
    "userProfileId": "1006195123",
    "userEmail": "jdoe@example.com",
    "isBloggerUser": False,
    "signupTimeSec": 1517740194,
    "isMultiLoginEnabled": False,
}


class RecordingPresenter:
    """Consent presenter that answers with a canned outcome.

    By default it echoes the state from the consent URL, like Inoreader does.
    Set ``block`` to make it wait until ``release`` is set.
    """

    def __init__(self, code="ghi", state=None, error=None, error_description=None, block=False):
        self.code = code
        self.state = state
        self.error = error
        self.error_description = error_description
        self.block = block
        self.release = asyncio.Event()
        self.entered = asyncio.Event()
        self.calls = 0
        self.consent_url = None
        self.callback_url = None
        self.finished = None

    async def __call__(self, consent_url, callback_url, finished):
        self.calls += 1
        self.consent_url = consent_url
        self.callback_url = callback_url
        self.finished = finished
        self.entered.set()
        if self.block:
            await self.release.wait()
        else:
            await asyncio.sleep(0)
        if self.error:
            return ConsentOutcome(error=self.error, error_description=self.error_description)
        echoed = parse_qs(urlparse(consent_url).query)["state"][0]
        return ConsentOutcome(code=self.code, state=self.state if self.state is not None else echoed)


class MemoryTokenStore:
    """In-memory TokenStore that records every save."""

    def __init__(self, record: TokenRecord | None = None):
        self.record = record
        self.load = AsyncMock(side_effect=self._load)
        self.save = AsyncMock(side_effect=self._save)

    async def _load(self) -> TokenRecord | None:
        return self.record

    async def _save(self, record: TokenRecord) -> None:
        self.record = record


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings(tmp_path):
    """Settings with app credentials and a temporary token directory."""
    return InoreaderSettings(
        _env_file=None,
        app_id=SAMPLE_APP_ID,
        app_key=SAMPLE_APP_KEY,
        token_dir=str(tmp_path),
    )


@pytest.fixture
def memory_store():
    return MemoryTokenStore()


@pytest.fixture
def mock_response():
    """Factory fixture to create mock HTTP responses."""

    def _create_response(data: Any = None, status_code: int = 200, text: str | None = None, headers: dict | None = None):
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        if text is None:
            text = json.dumps(data) if data is not None else ""
        response.text = text
        response.content = text.encode()
        if data is not None:
            response.json.return_value = data
        else:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        return response

    return _create_response


@pytest.fixture
def mock_http_client(mock_response):
    """Create a mock httpx.AsyncClient."""
    client = AsyncMock()
    default = mock_response({})
    client.post = AsyncMock(return_value=default)
    client.request = AsyncMock(return_value=default)
    return client


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
