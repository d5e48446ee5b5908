"""
Resolves the credentials used to open a Spotify session.

Credentials come from an ordered chain of providers. Each provider either
yields credentials or defers to the next one:

1. an access token given on the command line,
2. credentials cached by a previous session (matching `--username` if given),
3. a browser login (OAuth) when no username was given and a terminal is
   attached to show the login URL.
"""

import base64
import json
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from rich.markup import escape

from spot_export.exceptions import AuthenticationError

log = logging.getLogger(__name__)

AUTH_STORED = "AUTHENTICATION_STORED_SPOTIFY_CREDENTIALS"
AUTH_TOKEN = "AUTHENTICATION_SPOTIFY_TOKEN"

OAUTH_REDIRECT_URL = "http://127.0.0.1:5588/login"
OAUTH_SUCCESS_PAGE = "Logged in. You can close this tab and return to spot-export."


@dataclass(frozen=True)
class Credentials:
    """Login credentials in the form the service's login handshake expects."""

    auth_type: str
    auth_data: bytes = field(repr=False)
    username: str | None = None

    @classmethod
    def with_access_token(cls, token: str) -> "Credentials":
        return cls(auth_type=AUTH_TOKEN, auth_data=token.encode())


class CredentialProvider(ABC):
    """One step of the credential resolution chain."""

    name = "provider"

    @abstractmethod
    def resolve(self) -> Credentials | None:
        """Returns credentials, or None to defer to the next provider."""


class AccessTokenProvider(CredentialProvider):
    name = "access token"

    def __init__(self, access_token: str | None):
        self.access_token = access_token

    def resolve(self) -> Credentials | None:
        if not self.access_token:
            return None
        return Credentials.with_access_token(self.access_token)


class CachedCredentialsProvider(CredentialProvider):
    """
    Reads the reusable credentials a previous session stored on disk.
    When a username is requested, cached credentials of another user are ignored.
    """

    name = "cached credentials"

    def __init__(self, credentials_file: Path | None, username: str | None = None):
        self.credentials_file = credentials_file
        self.username = username

    def resolve(self) -> Credentials | None:
        if self.credentials_file is None or not self.credentials_file.is_file():
            log.debug("No cached credentials found.")
            return None
        try:
            stored = json.loads(self.credentials_file.read_text(encoding="utf-8"))
            credentials = Credentials(
                auth_type=stored.get("type", AUTH_STORED),
                auth_data=base64.b64decode(stored["credentials"]),
                username=stored.get("username"),
            )
        except (OSError, ValueError, KeyError) as e:
            log.warning(
                f"[yellow]Ignoring unreadable credentials cache "
                f"'{self.credentials_file}': {e}[/yellow]"
            )
            return None

        if self.username and credentials.username != self.username:
            log.debug("No cached credentials for specified username.")
            return None
        log.debug("Using cached credentials.")
        return credentials


def librespot_oauth_flow(show_url: Callable[[str], None]) -> str:
    """
    Runs the authorization code flow against the service's accounts page.
    Blocks until the browser redirects back to the local callback server.

    Returns:
        The issued access token.
    """
    from librespot.mercury import MercuryRequests
    from librespot.oauth import OAuth

    login = OAuth(MercuryRequests.keymaster_client_id, OAUTH_REDIRECT_URL, show_url)
    login.set_success_page_content(OAUTH_SUCCESS_PAGE)
    return login.flow().auth_data.decode()


def _has_terminal() -> bool:
    return sys.stderr.isatty()


class OAuthProvider(CredentialProvider):
    """Obtains an access token by logging in through the browser."""

    name = "browser login"

    def __init__(
        self,
        flow: Callable[[Callable[[str], None]], str] = librespot_oauth_flow,
        is_interactive: Callable[[], bool] = _has_terminal,
    ):
        self._flow = flow
        self._is_interactive = is_interactive

    @staticmethod
    def show_url(url: str) -> None:
        log.info(
            "[bold cyan]Open this URL in your browser to log in:[/bold cyan] "
            f"{escape(url)}"
        )

    def resolve(self) -> Credentials | None:
        if not self._is_interactive():
            log.debug("No terminal attached; cannot run the browser login.")
            return None
        try:
            token = self._flow(self.show_url)
        except Exception as e:
            raise AuthenticationError(f"Failed to get Spotify access token: {e}") from e
        if not token:
            raise AuthenticationError("Browser login returned an empty access token.")
        return Credentials.with_access_token(token)


def build_provider_chain(
    access_token: str | None,
    username: str | None,
    credentials_file: Path | None,
) -> list[CredentialProvider]:
    """
    Builds the default provider chain from command-line and config values.
    A requested username can only be served from the cache.
    """
    providers: list[CredentialProvider] = [
        AccessTokenProvider(access_token),
        CachedCredentialsProvider(credentials_file, username),
    ]
    if username is None:
        providers.append(OAuthProvider())
    return providers


def resolve_credentials(providers: list[CredentialProvider]) -> Credentials:
    """
    Tries each provider in order and returns the first credentials found.

    Raises:
        AuthenticationError: If no provider yields credentials.
    """
    for provider in providers:
        credentials = provider.resolve()
        if credentials is not None:
            log.info(f"Authenticating with {provider.name}...")
            return credentials
    raise AuthenticationError(
        "No credentials available. Pass --access-token, or log in once through "
        "the browser from a terminal to cache credentials."
    )
