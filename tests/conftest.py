import pytest

from spot_export.api.session import (
    AlbumRecord,
    EpisodeRecord,
    PlaylistRecord,
    SessionClient,
    ShowRecord,
    TrackRecord,
)
from spot_export.core.acquirer import OGG_HEADER_SIZE
from spot_export.models.config import ExportConfig
from spot_export.models.items import AudioFormat, ItemKind

HEADER = b"\x00" * OGG_HEADER_SIZE


def audio_for(item_id: str) -> bytes:
    """Playable bytes the fake session serves for an item."""
    return f"OggS-{item_id}".encode()


class FakeSessionClient(SessionClient):
    """In-memory session; every call is recorded in `calls`."""

    def __init__(self):
        self.tracks: dict[str, TrackRecord] = {}
        self.episodes: dict[str, EpisodeRecord] = {}
        self.albums: dict[str, AlbumRecord] = {}
        self.playlists: dict[str, PlaylistRecord] = {}
        self.shows: dict[str, ShowRecord] = {}
        self.streams: dict[str, bytes] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def add_track(
        self,
        track_id,
        name=None,
        artists=("Artist",),
        album="Album",
        covers=("https://i.scdn.co/image/cover",),
        formats=(AudioFormat.OGG_VORBIS_320,),
        alternatives=(),
        available=True,
    ) -> TrackRecord:
        files = {fmt: f"{track_id}-{fmt.value}" for fmt in formats}
        for file_id in files.values():
            self.streams[file_id] = HEADER + audio_for(track_id)
        record = TrackRecord(
            id=track_id,
            name=name or f"Song {track_id}",
            album_name=album,
            artists=list(artists),
            covers=list(covers),
            files=files,
            alternatives=list(alternatives),
            available=available,
        )
        self.tracks[track_id] = record
        return record

    def add_episode(
        self,
        episode_id,
        name=None,
        show="Show",
        publisher="Publisher",
        covers=("https://i.scdn.co/image/show",),
        available=True,
    ) -> EpisodeRecord:
        file_id = f"{episode_id}-ep"
        self.streams[file_id] = HEADER + audio_for(episode_id)
        record = EpisodeRecord(
            id=episode_id,
            name=name or f"Episode {episode_id}",
            show_name=show,
            publisher=publisher,
            covers=list(covers),
            files={AudioFormat.OGG_VORBIS_96: file_id},
            available=available,
        )
        self.episodes[episode_id] = record
        return record

    def _lookup(self, method: str, table: dict, key: str):
        self.calls.append((method, key))
        if key in self.failing or key not in table:
            raise RuntimeError(f"{method} failed for {key}")
        return table[key]

    async def fetch_track(self, track_id):
        return self._lookup("fetch_track", self.tracks, track_id)

    async def fetch_episode(self, episode_id):
        return self._lookup("fetch_episode", self.episodes, episode_id)

    async def fetch_album(self, album_id):
        return self._lookup("fetch_album", self.albums, album_id)

    async def fetch_playlist(self, playlist_id):
        return self._lookup("fetch_playlist", self.playlists, playlist_id)

    async def fetch_show(self, show_id):
        return self._lookup("fetch_show", self.shows, show_id)

    async def request_key(self, item_id, kind: ItemKind, file_id):
        self.calls.append(("request_key", item_id))
        return b"key"

    async def open_stream(self, file_id):
        return self._lookup("open_stream", self.streams, file_id)

    async def decrypt(self, key, data):
        return data

    async def close(self):
        self.closed = True

    def network_calls(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("request_key", "open_stream")]


@pytest.fixture
def session():
    return FakeSessionClient()


@pytest.fixture
def config(tmp_path):
    return ExportConfig(output_dir=tmp_path / "out", pacing_seconds=0)
