"""Local OAuth callback server and browser-based consent presenter.

Starts a temporary local HTTP server to receive the redirect from the
Inoreader consent page, which carries the authorization code or an error.
"""

from __future__ import annotations

import asyncio
import html
import logging
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from urllib.parse import urlparse

from .client import ConsentOutcome

logger = logging.getLogger(__name__)


class _CallbackHTTPServer(HTTPServer):
    """HTTPServer that remembers the consent outcome for one callback path."""

    def __init__(self, address: tuple[str, int], callback_path: str):
        super().__init__(address, OAuthCallbackHandler)
        self.callback_path = callback_path
        self.outcome: ConsentOutcome | None = None


class OAuthCallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler for the OAuth redirect."""

    server: _CallbackHTTPServer

    def log_message(self, format, *args):
        """Route request logs to the module logger instead of stderr."""
        logger.debug("callback server: " + format, *args)

    def do_GET(self):
        """Handle GET request (OAuth callback)."""
        parsed = urlparse(self.path)
        if parsed.path != self.server.callback_path:
            self.send_error(404)
            return

        outcome = ConsentOutcome.from_query(parsed.query)
        self.server.outcome = outcome

        if outcome.code:
            self._send_page(200, "Authorization Successful", "You can close this window and return to the application.")
        else:
            self._send_page(
                400,
                "Authorization Failed",
                outcome.error_description or "An error occurred during authorization.",
                outcome.error or "unknown_error",
            )

    def _send_page(self, status: int, title: str, message: str, error_code: str | None = None):
        code_line = f"<p><code>{html.escape(error_code)}</code></p>" if error_code else ""
        body = f"""<!DOCTYPE html>
<html>
<head><title>Inoreader {html.escape(title)}</title></head>
<body style="font-family: sans-serif; text-align: center; margin-top: 15vh">
    <h1>{html.escape(title)}</h1>
    <p>{html.escape(message)}</p>
    {code_line}
</body>
</html>
"""
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(body.encode())


class OAuthCallbackServer:
    """Local server for handling OAuth callbacks.

    Usage:
        server = OAuthCallbackServer(port=8080, path="/oauth2/callback")
        server.start()
        outcome = await server.wait_for_callback_async(timeout=300)
        server.stop()
    """

    def __init__(self, port: int = 8080, host: str = "localhost", path: str = "/oauth2/callback"):
        self.port = port
        self.host = host
        self.path = path
        self._server: _CallbackHTTPServer | None = None
        self._thread: Thread | None = None

    @classmethod
    def for_callback_url(cls, callback_url: str) -> "OAuthCallbackServer":
        """Create a server listening where ``callback_url`` points."""
        parsed = urlparse(callback_url)
        if parsed.scheme != "http" or not parsed.hostname:
            raise ValueError(f"Callback URL must be a plain http URL on this machine: {callback_url}")
        # Port 0 asks the OS for a free port, see start()
        port = 80 if parsed.port is None else parsed.port
        return cls(port=port, host=parsed.hostname, path=parsed.path or "/")

    @property
    def callback_url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def outcome(self) -> ConsentOutcome | None:
        return self._server.outcome if self._server else None

    def start(self) -> int:
        """Start the callback server on a background thread and return its port."""
        self._server = _CallbackHTTPServer((self.host, self.port), self.path)
        self.port = self._server.server_address[1]

        self._thread = Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.debug("OAuth callback server listening on %s", self.callback_url)
        return self.port

    def stop(self):
        """Stop the callback server."""
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=1)
            self._thread = None

    async def wait_for_callback_async(self, timeout: float = 300) -> ConsentOutcome:
        """Wait for the OAuth redirect.

        Raises:
            TimeoutError: If no callback received within timeout
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        while loop.time() - start < timeout:
            outcome = self.outcome
            if outcome is not None:
                return outcome
            await asyncio.sleep(0.1)

        raise TimeoutError(f"No OAuth callback received within {timeout} seconds")


class BrowserConsentPresenter:
    """Consent presenter that opens the system browser and listens on the redirect URI.

    The callback server is shut down when the authorization flow finishes,
    whether it succeeded or not.
    """

    def __init__(self, timeout: float = 300, open_browser: bool = True):
        self.timeout = timeout
        self.open_browser = open_browser

    async def __call__(
        self,
        consent_url: str,
        callback_url: str,
        finished: asyncio.Future[bool],
    ) -> ConsentOutcome:
        loop = asyncio.get_running_loop()
        server = OAuthCallbackServer.for_callback_url(callback_url)
        server.start()
        finished.add_done_callback(lambda _: loop.run_in_executor(None, server.stop))

        logger.info("Waiting for Inoreader authorization at %s", consent_url)
        if self.open_browser:
            webbrowser.open(consent_url)

        try:
            return await server.wait_for_callback_async(timeout=self.timeout)
        except TimeoutError:
            return ConsentOutcome(
                error="timeout",
                error_description=f"No authorization received within {self.timeout} seconds",
            )
