"""
Spotify Session Layer.

This package wraps the streaming-service session behind the `SessionClient`
interface and resolves the credentials used to open it.
"""

from .auth import Credentials, build_provider_chain, resolve_credentials
from .session import (
    AlbumRecord,
    EpisodeRecord,
    PlaylistRecord,
    SessionClient,
    ShowRecord,
    TrackRecord,
)

__all__ = [
    "AlbumRecord",
    "Credentials",
    "EpisodeRecord",
    "PlaylistRecord",
    "SessionClient",
    "ShowRecord",
    "TrackRecord",
    "build_provider_chain",
    "resolve_credentials",
]
