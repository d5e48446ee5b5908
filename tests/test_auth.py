import base64
import json
import logging

import pytest

from spot_export.api.auth import (
    AUTH_STORED,
    AUTH_TOKEN,
    AccessTokenProvider,
    CachedCredentialsProvider,
    OAuthProvider,
    build_provider_chain,
    resolve_credentials,
)
from spot_export.exceptions import AuthenticationError


@pytest.fixture
def credentials_file(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(
        json.dumps(
            {
                "username": "alice",
                "credentials": base64.b64encode(b"blob").decode(),
                "type": AUTH_STORED,
            }
        )
    )
    return path


def no_login(show_url):
    raise AssertionError("browser login started unexpectedly")


def test_access_token_wins(credentials_file):
    credentials = resolve_credentials(
        build_provider_chain("tok", None, credentials_file)
    )
    assert credentials.auth_type == AUTH_TOKEN
    assert credentials.auth_data == b"tok"


def test_cached_credentials_are_used(credentials_file):
    credentials = CachedCredentialsProvider(credentials_file).resolve()
    assert credentials.auth_type == AUTH_STORED
    assert credentials.auth_data == b"blob"
    assert credentials.username == "alice"


def test_cached_credentials_must_match_username(credentials_file):
    assert CachedCredentialsProvider(credentials_file, "alice").resolve() is not None
    assert CachedCredentialsProvider(credentials_file, "bob").resolve() is None


def test_unreadable_cache_is_ignored(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text("{not json")
    assert CachedCredentialsProvider(path).resolve() is None
    assert CachedCredentialsProvider(tmp_path / "missing.json").resolve() is None


def test_browser_login_yields_token(caplog):
    def flow(show_url):
        show_url("https://accounts.spotify.com/authorize?client_id=x")
        return "oauth-token"

    with caplog.at_level(logging.INFO, logger="spot_export.api.auth"):
        credentials = OAuthProvider(flow=flow, is_interactive=lambda: True).resolve()

    assert credentials.auth_type == AUTH_TOKEN
    assert credentials.auth_data == b"oauth-token"
    assert "https://accounts.spotify.com/authorize?client_id=x" in caplog.text


def test_no_browser_login_without_terminal():
    provider = OAuthProvider(flow=no_login, is_interactive=lambda: False)
    assert provider.resolve() is None


def test_failed_browser_login_raises():
    def flow(show_url):
        raise RuntimeError("Received status code 400: Bad Request")

    provider = OAuthProvider(flow=flow, is_interactive=lambda: True)
    with pytest.raises(AuthenticationError, match="status code 400"):
        provider.resolve()


def test_username_is_only_served_from_cache(credentials_file):
    providers = build_provider_chain(None, "bob", credentials_file)

    assert not any(isinstance(p, OAuthProvider) for p in providers)
    with pytest.raises(AuthenticationError):
        resolve_credentials(providers)


def test_browser_login_is_last_resort(tmp_path):
    providers = build_provider_chain(None, None, tmp_path / "missing.json")
    assert isinstance(providers[-1], OAuthProvider)


def test_nothing_resolves(tmp_path):
    providers = [
        AccessTokenProvider(None),
        CachedCredentialsProvider(tmp_path / "missing.json"),
        OAuthProvider(flow=no_login, is_interactive=lambda: False),
    ]
    with pytest.raises(AuthenticationError):
        resolve_credentials(providers)
