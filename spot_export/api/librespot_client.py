"""
`SessionClient` implementation backed by librespot-python.

librespot is synchronous; every call is pushed to a worker thread so the
event loop stays responsive while the pipeline awaits it.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import aiohttp
from librespot.audio.decrypt import AesAudioDecrypt
from librespot.core import Session
from librespot.metadata import AlbumId, EpisodeId, PlaylistId, ShowId, TrackId
from librespot.proto import Authentication_pb2 as Authentication

from spot_export.exceptions import ConnectionFailedError
from spot_export.media.downloader import get_connection_pool
from spot_export.models.items import AudioFormat, ItemKind

from .auth import Credentials
from .session import (
    AlbumRecord,
    EpisodeRecord,
    PlaylistRecord,
    SessionClient,
    ShowRecord,
    TrackRecord,
)

log = logging.getLogger(__name__)

IMAGE_URL = "https://i.scdn.co/image/"
# Decryption counters advance per 128 KiB storage chunk.
CHUNK_SIZE = 128 * 1024


def _gid_to_base62(gid: bytes) -> str:
    return TrackId.from_hex(gid.hex()).to_spotify_uri().rsplit(":", 1)[-1]


def _files_by_format(audio_files: Any) -> dict[AudioFormat, str]:
    files: dict[AudioFormat, str] = {}
    for audio_file in audio_files:
        try:
            files.setdefault(AudioFormat(audio_file.format), audio_file.file_id.hex())
        except ValueError:
            log.debug(f"Ignoring unknown audio format {audio_file.format}.")
    return files


def _cover_urls(images: Any) -> list[str]:
    return [IMAGE_URL + image.file_id.hex() for image in images]


class LibrespotSessionClient(SessionClient):
    """An authenticated librespot session."""

    def __init__(self, session: Session):
        self._session = session

    @classmethod
    async def connect(
        cls, credentials: Credentials, credentials_file: Path | None = None
    ) -> "LibrespotSessionClient":
        """
        Opens a session with the given credentials. Reusable credentials are
        written to `credentials_file` on success so later runs can skip login.

        Raises:
            ConnectionFailedError: If the session cannot be established.
        """
        conf_builder = Session.Configuration.Builder()
        if credentials_file is not None:
            credentials_file.parent.mkdir(parents=True, exist_ok=True)
            conf_builder.set_stored_credential_file(str(credentials_file))
        builder = Session.Builder(conf_builder.build())
        builder.login_credentials = Authentication.LoginCredentials(
            typ=Authentication.AuthenticationType.Value(credentials.auth_type),
            username=credentials.username or "",
            auth_data=credentials.auth_data,
        )
        try:
            session = await asyncio.to_thread(builder.create)
        except Exception as e:
            raise ConnectionFailedError(f"Could not connect to Spotify: {e}") from e

        log.info(f"Connected as: {session.username()}")
        return cls(session)

    async def close(self) -> None:
        await asyncio.to_thread(self._session.close)

    async def fetch_track(self, track_id: str) -> TrackRecord:
        track = await asyncio.to_thread(
            self._session.api().get_metadata_4_track, TrackId.from_base62(track_id)
        )
        return TrackRecord(
            id=track_id,
            name=track.name,
            album_name=track.album.name,
            artists=[artist.name for artist in track.artist],
            covers=_cover_urls(track.album.cover_group.image),
            files=_files_by_format(track.file),
            alternatives=[_gid_to_base62(alt.gid) for alt in track.alternative],
            available=len(track.file) > 0,
        )

    async def fetch_episode(self, episode_id: str) -> EpisodeRecord:
        episode = await asyncio.to_thread(
            self._session.api().get_metadata_4_episode,
            EpisodeId.from_base62(episode_id),
        )
        return EpisodeRecord(
            id=episode_id,
            name=episode.name,
            show_name=episode.show.name,
            publisher=episode.show.publisher,
            covers=_cover_urls(episode.cover_image.image),
            files=_files_by_format(episode.audio),
            available=len(episode.audio) > 0,
        )

    async def fetch_album(self, album_id: str) -> AlbumRecord:
        album = await asyncio.to_thread(
            self._session.api().get_metadata_4_album, AlbumId.from_base62(album_id)
        )
        track_ids = [
            _gid_to_base62(track.gid) for disc in album.disc for track in disc.track
        ]
        return AlbumRecord(id=album_id, name=album.name, track_ids=track_ids)

    async def fetch_playlist(self, playlist_id: str) -> PlaylistRecord:
        playlist = await asyncio.to_thread(
            self._session.api().get_playlist,
            PlaylistId.from_uri(f"spotify:playlist:{playlist_id}"),
        )
        items: list[tuple[ItemKind, str]] = []
        for entry in playlist.contents.items:
            parts = entry.uri.split(":")
            if len(parts) != 3 or parts[1] not in ("track", "episode"):
                log.debug(f"Skipping playlist entry '{entry.uri}'.")
                continue
            items.append((ItemKind(parts[1]), parts[2]))
        return PlaylistRecord(
            id=playlist_id, name=playlist.attributes.name, items=items
        )

    async def fetch_show(self, show_id: str) -> ShowRecord:
        show = await asyncio.to_thread(
            self._session.api().get_metadata_4_show, ShowId.from_base62(show_id)
        )
        return ShowRecord(
            id=show_id,
            name=show.name,
            episode_ids=[_gid_to_base62(episode.gid) for episode in show.episode],
        )

    async def request_key(self, item_id: str, kind: ItemKind, file_id: str) -> bytes:
        playable = (
            TrackId.from_base62(item_id)
            if kind is ItemKind.TRACK
            else EpisodeId.from_base62(item_id)
        )
        return await asyncio.to_thread(
            self._session.audio_key().get_audio_key,
            playable.get_gid(),
            bytes.fromhex(file_id),
        )

    async def open_stream(self, file_id: str) -> bytes:
        url = await asyncio.to_thread(
            self._session.cdn().get_audio_url, bytes.fromhex(file_id)
        )
        pool = await get_connection_pool()
        async with pool.get(url) as response:
            response.raise_for_status()
            try:
                return await response.read()
            except aiohttp.ClientPayloadError as e:
                raise OSError(f"Truncated audio stream for file {file_id}") from e

    async def decrypt(self, key: bytes, data: bytes) -> bytes:
        def _decrypt() -> bytes:
            cipher = AesAudioDecrypt(key)
            return b"".join(
                cipher.decrypt_chunk(index, data[offset : offset + CHUNK_SIZE])
                for index, offset in enumerate(range(0, len(data), CHUNK_SIZE))
            )

        return await asyncio.to_thread(_decrypt)
