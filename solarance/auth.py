"""OpenID Connect login with PKCE and a one-shot local redirect listener."""

from __future__ import annotations

import base64
import hashlib
import os
import secrets
import socket
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

REDIRECT_URI = "http://localhost:13613"
LISTEN_HOST = "127.0.0.1"
LISTEN_PORT = 13613
DEFAULT_SCOPES = ("read", "write")
HTTP_TIMEOUT = 30.0
LANDING_MESSAGE = (
    "<h1>Login completed!</h1> <p>Return to <em>Solarance:Beginnings</em> "
    "and complain about this travesty of a landing page!</p>"
)


class AuthError(Exception):
    """Raised when any step of the login fails."""


@dataclass(frozen=True)
class OidcConfig:
    client_id: str
    issuer_url: str
    redirect_uri: str = REDIRECT_URI
    listen_host: str = LISTEN_HOST
    listen_port: int = LISTEN_PORT
    scopes: tuple[str, ...] = DEFAULT_SCOPES

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> OidcConfig:
        """Read AUTH0_CLIENT_ID and AUTH0_ISSUER_URL from the environment."""
        env = os.environ if environ is None else environ
        client_id = env.get("AUTH0_CLIENT_ID")
        if not client_id:
            raise AuthError("Missing the AUTH0_CLIENT_ID environment variable.")
        issuer_url = env.get("AUTH0_ISSUER_URL")
        if not issuer_url:
            raise AuthError("Missing AUTH0_ISSUER_URL!")
        parts = urlsplit(issuer_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise AuthError("Invalid issuer URL")
        return cls(client_id=client_id, issuer_url=issuer_url)


def _s256_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def make_pkce_pair() -> tuple[str, str]:
    """Return a fresh (challenge, verifier) pair using the S256 method."""
    verifier = secrets.token_urlsafe(32)
    return _s256_challenge(verifier), verifier


def _json(response: Any, what: str) -> dict:
    if response.status_code != 200:
        raise AuthError(f"{what} failed with HTTP status {response.status_code}")
    try:
        body = response.json()
    except ValueError as exc:
        raise AuthError(f"{what} returned invalid JSON") from exc
    if not isinstance(body, dict):
        raise AuthError(f"{what} returned an unexpected document")
    return body


def discover(issuer_url: str, session: Optional[Any] = None) -> dict:
    """Fetch and check the provider metadata of ``issuer_url``."""
    session = session or requests.Session()
    url = issuer_url.rstrip("/") + "/.well-known/openid-configuration"
    try:
        response = session.get(url, allow_redirects=False, timeout=HTTP_TIMEOUT)
    except requests.RequestException as exc:
        raise AuthError(f"provider discovery failed: {exc}") from exc
    metadata = _json(response, "provider discovery")
    if str(metadata.get("issuer", "")).rstrip("/") != issuer_url.rstrip("/"):
        raise AuthError("provider metadata names a different issuer")
    for endpoint in ("authorization_endpoint", "token_endpoint"):
        if not metadata.get(endpoint):
            raise AuthError(f"provider metadata lacks {endpoint}")
    return metadata


def build_authorization_url(
    metadata: Mapping[str, Any],
    client_id: str,
    redirect_uri: str,
    challenge: str,
    state: str,
    nonce: str,
    scopes: Sequence[str],
) -> str:
    """Return the URL the user visits to start the authorization-code flow."""
    endpoint = urlsplit(metadata["authorization_endpoint"])
    params = parse_qsl(endpoint.query, keep_blank_values=True)
    params += [
        ("response_type", "code"),
        ("client_id", client_id),
        ("state", state),
        ("code_challenge", challenge),
        ("code_challenge_method", "S256"),
        ("redirect_uri", redirect_uri),
        ("scope", " ".join(["openid", *scopes])),
        ("nonce", nonce),
    ]
    return urlunsplit(endpoint._replace(query=urlencode(params)))


def parse_redirect_request(request_line: str) -> tuple[str, str]:
    """Return (code, state) from the request line of the provider's redirect."""
    parts = request_line.split()
    if len(parts) < 2:
        raise AuthError("malformed redirect request")
    query = dict(reversed(parse_qsl(urlsplit("http://localhost" + parts[1]).query)))
    try:
        return query["code"], query["state"]
    except KeyError as exc:
        raise AuthError(f"redirect carries no {exc.args[0]}") from exc


def landing_response() -> bytes:
    """The HTTP response shown in the browser once the redirect arrives."""
    body = LANDING_MESSAGE.encode("utf-8")
    head = f"HTTP/1.1 200 OK\r\ncontent-length: {len(body)}\r\n\r\n".encode("ascii")
    return head + body


def exchange_code(
    metadata: Mapping[str, Any],
    client_id: str,
    redirect_uri: str,
    code: str,
    verifier: str,
    session: Optional[Any] = None,
) -> dict:
    """Trade an authorization code for the token response."""
    session = session or requests.Session()
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
        "client_id": client_id,
        "code_verifier": verifier,
    }
    try:
        response = session.post(
            metadata["token_endpoint"],
            data=data,
            headers={"Accept": "application/json"},
            allow_redirects=False,
            timeout=HTTP_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise AuthError("Failed to contact token endpoint") from exc
    return _json(response, "token exchange")


def _await_redirect(host: str, port: int) -> tuple[str, str]:
    with socket.create_server((host, port)) as listener:
        connection, _ = listener.accept()
        with connection, connection.makefile("rb") as reader:
            request_line = reader.readline().decode("latin-1")
            code, state = parse_redirect_request(request_line)
            connection.sendall(landing_response())
    return code, state


def get_client_token(
    config: Optional[OidcConfig] = None, session: Optional[Any] = None
) -> str:
    """Run the whole login and return the ID token."""
    config = config or OidcConfig.from_env()
    owns_session = session is None
    session = session or requests.Session()
    try:
        metadata = discover(config.issuer_url, session)
        challenge, verifier = make_pkce_pair()
        state = secrets.token_urlsafe(16)
        nonce = secrets.token_urlsafe(16)
        url = build_authorization_url(
            metadata, config.client_id, config.redirect_uri, challenge, state, nonce, config.scopes
        )
        print(f"Browse to: {url}")

        code, returned_state = _await_redirect(config.listen_host, config.listen_port)
        print(f"Auth0 returned the following code:\n{code}\n")
        print(f"Auth0 returned the following state:\n{returned_state} (expected `{state}`)\n")

        response = exchange_code(
            metadata, config.client_id, config.redirect_uri, code, verifier, session
        )
        print(f"Auth0 returned access token:\n{response.get('access_token', '')}\n")
        print(f"Auth0 returned scopes: {str(response.get('scope', '')).split()}")

        id_token = response.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise AuthError("ID token is missing or malformed.")
        return id_token
    finally:
        if owns_session:
            session.close()