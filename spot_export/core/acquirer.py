"""
Acquires a single queued item: resolves its metadata and availability,
selects an encoding, and fetches and decrypts its audio.
"""

import logging

from spot_export.api.session import EpisodeRecord, SessionClient, TrackRecord
from spot_export.exceptions import (
    AcquisitionError,
    NoCoverArtError,
    NoUsableEncodingError,
    UnavailableError,
)
from spot_export.models.items import (
    AcquiredItem,
    AudioFormat,
    AudioItem,
    ItemKind,
    QueueEntry,
    ResolvedItem,
)

log = logging.getLogger(__name__)

# Strict order of preference; other formats are never downloaded.
PREFERRED_FORMATS = (
    AudioFormat.OGG_VORBIS_320,
    AudioFormat.OGG_VORBIS_160,
    AudioFormat.OGG_VORBIS_96,
)

# Size of the service-specific header preceding the Ogg stream.
OGG_HEADER_SIZE = 0xA7


def select_encoding(files: dict[AudioFormat, str]) -> tuple[AudioFormat, str]:
    """
    Picks the best Ogg Vorbis file of an item.

    Raises:
        NoUsableEncodingError: If no Ogg Vorbis file is offered.
    """
    for audio_format in PREFERRED_FORMATS:
        if audio_format in files:
            return audio_format, files[audio_format]
    offered = ", ".join(f.name for f in files) or "none"
    raise NoUsableEncodingError(
        f"No Ogg Vorbis encoding available (offered: {offered})"
    )


def strip_header(decrypted: bytes, item_id: str | None = None) -> bytes:
    """Removes the fixed header that precedes the playable Ogg stream."""
    if len(decrypted) <= OGG_HEADER_SIZE:
        raise AcquisitionError(
            f"Decrypted stream is too short ({len(decrypted)} bytes)",
            item_id,
        )
    return decrypted[OGG_HEADER_SIZE:]


class ItemAcquirer:
    """
    Turns a queue entry into an `AcquiredItem`.

    Every failure is raised as an `AcquisitionError` subclass scoped to the
    item; the caller decides how to continue.
    """

    def __init__(self, session: SessionClient, require_cover: bool = False):
        self.session = session
        self.require_cover = require_cover

    async def acquire(self, entry: QueueEntry) -> AcquiredItem:
        """Resolves and fetches an item in one step."""
        return await self.fetch(await self.resolve(entry))

    async def resolve(self, entry: QueueEntry) -> ResolvedItem:
        """
        Resolves metadata, availability, encoding and artwork without
        downloading any audio.
        """
        if entry.kind is ItemKind.TRACK:
            record = await self._resolve_track(entry.item_id)
            item = self._track_item(record)
        else:
            record = await self._resolve_episode(entry.item_id)
            item = self._episode_item(record)

        try:
            audio_format, file_id = select_encoding(record.files)
        except NoUsableEncodingError as e:
            raise NoUsableEncodingError(e.reason, item.item_id) from None
        log.debug(f"Selected {audio_format.name} for '{item.name}'.")

        return ResolvedItem(
            item=item,
            audio_format=audio_format,
            file_id=file_id,
            cover_url=self._resolve_cover(item),
        )

    async def fetch(self, resolved: ResolvedItem) -> AcquiredItem:
        """Fetches and decrypts the audio of a resolved item."""
        payload = await self._fetch_audio(resolved.item, resolved.file_id)
        return AcquiredItem(
            item=resolved.item,
            audio_format=resolved.audio_format,
            payload=payload,
            cover_url=resolved.cover_url,
        )

    async def _resolve_track(self, track_id: str) -> TrackRecord:
        """
        Fetches a track and, if it is unavailable, the first available of its
        alternatives in listed order.
        """
        try:
            track = await self.session.fetch_track(track_id)
        except Exception as e:
            raise UnavailableError(f"Metadata unavailable: {e}", track_id) from e

        if track.available:
            return track

        for alternative_id in track.alternatives:
            try:
                alternative = await self.session.fetch_track(alternative_id)
            except Exception as e:
                log.debug(f"Alternative {alternative_id} of {track_id} failed: {e}")
                continue
            if alternative.available:
                log.info(
                    f"Track '{track.name}' is unavailable, using alternative "
                    f"{alternative_id}."
                )
                return alternative

        raise UnavailableError(
            f"Track '{track.name}' and its {len(track.alternatives)} alternatives "
            "are unavailable",
            track_id,
        )

    async def _resolve_episode(self, episode_id: str) -> EpisodeRecord:
        try:
            episode = await self.session.fetch_episode(episode_id)
        except Exception as e:
            raise UnavailableError(f"Metadata unavailable: {e}", episode_id) from e

        if not episode.available:
            # Episodes have no alternatives; carry on with what is there.
            log.warning(
                f"[yellow]Episode '{episode.name}' is marked unavailable.[/yellow]"
            )
        return episode

    @staticmethod
    def _track_item(track: TrackRecord) -> AudioItem:
        return AudioItem(
            item_id=track.id,
            kind=ItemKind.TRACK,
            name=track.name,
            group_name=track.album_name,
            contributors=list(track.artists),
            covers=list(track.covers),
            alternatives=list(track.alternatives),
        )

    @staticmethod
    def _episode_item(episode: EpisodeRecord) -> AudioItem:
        return AudioItem(
            item_id=episode.id,
            kind=ItemKind.EPISODE,
            name=episode.name,
            group_name=episode.show_name,
            contributors=[episode.publisher] if episode.publisher else [],
            covers=list(episode.covers),
        )

    def _resolve_cover(self, item: AudioItem) -> str | None:
        if item.covers:
            return item.covers[0]
        if self.require_cover:
            raise NoCoverArtError(
                "No covers available for this audio item", item.item_id
            )
        log.debug(f"No cover art for '{item.name}'.")
        return None

    async def _fetch_audio(self, item: AudioItem, file_id: str) -> bytes:
        try:
            key = await self.session.request_key(item.item_id, item.kind, file_id)
            encrypted = await self.session.open_stream(file_id)
            decrypted = await self.session.decrypt(key, encrypted)
        except Exception as e:
            raise AcquisitionError(f"Could not fetch audio: {e}", item.item_id) from e
        return strip_header(decrypted, item.item_id)
