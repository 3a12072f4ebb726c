"""
OAuth2 authorization-code flow.

``authorize`` opens the browser at Nest's login page and leaves a one-shot
``AuthCallbackServer`` listening on a fixed local port in a separate process.
When Nest redirects back, the server exchanges the code for an access token,
stores it through the TokenStore, answers with a small HTML page, and stops
listening. The two processes only share config.json.

States: IDLE -> LISTENING -> CODE_RECEIVED -> EXCHANGING -> SUCCESS | FAILED -> CLOSED
"""

from __future__ import annotations

import errno
import html
import logging
import secrets
import subprocess
import sys
from datetime import timedelta
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from alfred_nest.errors import (
    ApiError,
    AuthorizationInProgress,
    DecodeError,
    NestError,
    NetworkError,
    PersistenceError,
)
from alfred_nest.tokens import Clock, TokenStore, utc_now
from alfred_nest.transport.http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZE_URL = "https://home.nest.com/login/oauth2"
DEFAULT_TOKEN_URL = "https://api.home.nest.com/oauth2/access_token"
CALLBACK_HOST = "localhost"
CALLBACK_PORT = 9000
CALLBACK_PATH = "/authorize"
PAGE_TITLE = "Alfred Nest"

# Printed by the listener process once it is bound; exit status when the
# port is taken.
READY_LINE = "listening"
EXIT_IN_PROGRESS = 3


class AuthState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    CODE_RECEIVED = "code_received"
    EXCHANGING = "exchanging"
    SUCCESS = "success"
    FAILED = "failed"
    CLOSED = "closed"


class TokenGrant(BaseModel):
    access_token: str
    expires_in: int


def new_state() -> str:
    return secrets.token_urlsafe(32)


def authorize_url(client_id: str, state: str, base_url: str = DEFAULT_AUTHORIZE_URL) -> str:
    return f"{base_url}?{urlencode({'client_id': client_id, 'state': state})}"


def exchange_code(
    code: str,
    client_id: str,
    client_secret: str,
    token_url: str = DEFAULT_TOKEN_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> TokenGrant:
    """POST the authorization code to Nest and return the granted token."""
    logger.info("POSTing to %s", token_url)
    try:
        resp = httpx.post(
            token_url,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        raise NetworkError(f"Token exchange failed: {e}") from e

    if not resp.is_success:
        logger.warning("bad response code (%d): %s", resp.status_code, resp.text[:200])
        raise ApiError(resp.status_code, f"{resp.status_code} {resp.reason_phrase}", resp.text)

    try:
        return TokenGrant.model_validate_json(resp.content)
    except ValidationError as e:
        raise DecodeError(f"Malformed token response: {e}") from e


def render_page(content: str, css_class: str) -> bytes:
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><title>{PAGE_TITLE}</title>"
        "<style>"
        "body{font-family:sans-serif}"
        "h1{font-size:20px}"
        "body>div{width:400px;margin:50px auto;text-align:center;border:solid 1px transparent}"
        "body.fail>div{background:#fdd}"
        "body.success>div{background:#cfc}"
        "</style>"
        f'</head><body class="{css_class}"><div>{content}</div></body></html>'
    ).encode("utf-8")


def _failure(detail: str, lead: str = "") -> bytes:
    return render_page(f"<h1>Authorization failed</h1>{lead}<pre>{html.escape(detail)}</pre>", "fail")


class _CallbackHandler(BaseHTTPRequestHandler):
    server: "_CallbackHTTPServer"

    def do_GET(self):
        url = urlsplit(self.path)
        if url.path != CALLBACK_PATH:
            self.send_error(404)
            return
        status, content = self.server.owner.handle_callback(parse_qs(url.query))
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format, *args):
        logger.debug("%s - " + format, self.address_string(), *args)


class _CallbackHTTPServer(HTTPServer):
    owner: AuthCallbackServer


class AuthCallbackServer:
    """Services exactly one OAuth callback, then closes its listener."""

    def __init__(
        self,
        tokens: TokenStore,
        client_id: str,
        client_secret: str,
        expected_state: Optional[str] = None,
        host: str = CALLBACK_HOST,
        port: int = CALLBACK_PORT,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Clock = utc_now,
    ):
        self._tokens = tokens
        self._client_id = client_id
        self._client_secret = client_secret
        self._expected_state = expected_state
        self._host = host
        self._port = port
        self._token_url = token_url
        self._timeout = timeout
        self._clock = clock
        self._httpd: Optional[_CallbackHTTPServer] = None
        self.state = AuthState.IDLE
        self.error: Optional[str] = None

    @property
    def port(self) -> int:
        return self._httpd.server_address[1] if self._httpd else self._port

    def listen(self) -> None:
        try:
            httpd = _CallbackHTTPServer((self._host, self._port), _CallbackHandler)
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                raise AuthorizationInProgress(
                    f"Port {self._port} is in use; an authorization is already in progress."
                ) from e
            raise NetworkError(f"Cannot listen on {self._host}:{self._port}: {e}") from e
        httpd.owner = self
        self._httpd = httpd
        self.state = AuthState.LISTENING
        if self._expected_state is None:
            logger.warning("No expected state given; the callback state will not be checked")
        logger.info("Waiting for OAuth callback on http://%s:%d%s", self._host, self.port, CALLBACK_PATH)

    def serve_once(self) -> AuthState:
        """Block until one callback has been handled, then close."""
        if self._httpd is None:
            self.listen()
        try:
            while self.state not in (AuthState.SUCCESS, AuthState.FAILED):
                self._httpd.handle_request()
        finally:
            self.close()
        return AuthState.SUCCESS if self.error is None else AuthState.FAILED

    def close(self) -> None:
        if self._httpd is not None:
            logger.info("Shutting down...")
            self._httpd.server_close()
            self._httpd = None
        self.state = AuthState.CLOSED

    def _fail(self, status: int, detail: str, page: bytes) -> tuple[int, bytes]:
        logger.error("Authorization failed: %s", detail)
        self.error = detail
        self.state = AuthState.FAILED
        return status, page

    def handle_callback(self, query: dict[str, list[str]]) -> tuple[int, bytes]:
        logger.info("Received OAuth request")
        self.state = AuthState.CODE_RECEIVED
        code = (query.get("code") or [""])[0]
        state = (query.get("state") or [""])[0]

        if self._expected_state is not None and not secrets.compare_digest(state, self._expected_state):
            return self._fail(400, "state mismatch", _failure("The request did not match this authorization attempt."))
        if not code:
            detail = (query.get("error") or ["no authorization code in callback"])[0]
            return self._fail(400, detail, _failure(detail))

        self.state = AuthState.EXCHANGING
        try:
            grant = exchange_code(code, self._client_id, self._client_secret, self._token_url, self._timeout)
        except NetworkError as e:
            return self._fail(502, str(e), _failure(str(e), "<p>Could not reach Nest.</p>"))
        except ApiError as e:
            body = (e.details or {}).get("body", "")
            return self._fail(502, f"{e}: {body}", _failure(body or str(e), f"<p>Nest answered {html.escape(str(e))}</p>"))
        except DecodeError as e:
            return self._fail(502, str(e), _failure(str(e), "<p>Nest sent an unreadable token.</p>"))

        expiry = self._clock() + timedelta(seconds=grant.expires_in)
        try:
            # Another invocation may have changed settings since we started.
            self._tokens.reload()
            self._tokens.save(grant.access_token, expiry)
        except PersistenceError as e:
            return self._fail(500, str(e), _failure(
                str(e),
                "<p>The authorization process itself passed, but there was an error saving the token:</p>",
            ))

        self.state = AuthState.SUCCESS
        return 200, render_page(
            "<h1>Authorization was successful!</h1><p>You may now close this window/tab.</p>", "success",
        )


def spawn_callback_server(state: str) -> subprocess.Popen:
    """Start ``nst serve`` detached and wait until it is bound.

    Raises AuthorizationInProgress if the listener could not take the port.
    """
    proc = subprocess.Popen(
        [sys.executable, "-m", "alfred_nest", "serve", "--state", state],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
        text=True,
    )
    assert proc.stdout is not None
    line = proc.stdout.readline()
    proc.stdout.close()
    if line.startswith(READY_LINE):
        return proc

    returncode = proc.wait()
    if returncode == EXIT_IN_PROGRESS:
        raise AuthorizationInProgress()
    raise NestError("auth_server_failed", f"Authorization listener exited with status {returncode}")
