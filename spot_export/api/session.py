"""
The boundary between the export pipeline and the streaming service.

`SessionClient` is the only handle the pipeline uses to talk to the service.
It is created once per run, passed explicitly to every component that needs
it and only used for lookups, never mutated by the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from spot_export.models.items import AudioFormat, ItemKind


@dataclass
class TrackRecord:
    id: str
    name: str
    album_name: str
    artists: list[str] = field(default_factory=list)
    covers: list[str] = field(default_factory=list)
    files: dict[AudioFormat, str] = field(default_factory=dict)
    alternatives: list[str] = field(default_factory=list)
    available: bool = True


@dataclass
class EpisodeRecord:
    id: str
    name: str
    show_name: str
    publisher: str
    covers: list[str] = field(default_factory=list)
    files: dict[AudioFormat, str] = field(default_factory=dict)
    available: bool = True


@dataclass
class AlbumRecord:
    id: str
    name: str
    track_ids: list[str] = field(default_factory=list)


@dataclass
class PlaylistRecord:
    id: str
    name: str
    items: list[tuple[ItemKind, str]] = field(default_factory=list)


@dataclass
class ShowRecord:
    """A podcast show. `episode_ids` are in the order the service returns them."""

    id: str
    name: str
    episode_ids: list[str] = field(default_factory=list)


class SessionClient(ABC):
    """An authenticated session with the streaming service."""

    @abstractmethod
    async def fetch_track(self, track_id: str) -> TrackRecord: ...

    @abstractmethod
    async def fetch_episode(self, episode_id: str) -> EpisodeRecord: ...

    @abstractmethod
    async def fetch_album(self, album_id: str) -> AlbumRecord: ...

    @abstractmethod
    async def fetch_playlist(self, playlist_id: str) -> PlaylistRecord: ...

    @abstractmethod
    async def fetch_show(self, show_id: str) -> ShowRecord: ...

    @abstractmethod
    async def request_key(self, item_id: str, kind: ItemKind, file_id: str) -> bytes:
        """Requests the decryption key of one encoded file of an item."""

    @abstractmethod
    async def open_stream(self, file_id: str) -> bytes:
        """Fetches the complete encrypted byte stream of an encoded file."""

    @abstractmethod
    async def decrypt(self, key: bytes, data: bytes) -> bytes: ...

    async def close(self) -> None:
        """Releases the underlying connection."""
