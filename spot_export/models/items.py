"""
Records that flow through the export pipeline, from a parsed link to an
acquired, decrypted item.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class LinkKind(str, Enum):
    """Kinds of links accepted on input."""

    PLAYLIST = "playlist"
    ALBUM = "album"
    TRACK = "track"
    EPISODE = "episode"
    SHOW = "show"

    @property
    def is_container(self) -> bool:
        return self in (LinkKind.PLAYLIST, LinkKind.ALBUM, LinkKind.SHOW)


class ItemKind(str, Enum):
    """Kinds of leaf items that can be downloaded."""

    TRACK = "track"
    EPISODE = "episode"


class AudioFormat(IntEnum):
    """Audio file formats as numbered by the streaming service."""

    OGG_VORBIS_96 = 0
    OGG_VORBIS_160 = 1
    OGG_VORBIS_320 = 2
    MP3_256 = 3
    MP3_320 = 4
    MP3_160 = 5
    MP3_96 = 6
    MP3_160_ENC = 7
    AAC_24 = 8
    AAC_48 = 9
    FLAC_FLAC = 16

    @property
    def label(self) -> str:
        codec, _, rate = self.name.rpartition("_")
        return f"{codec.replace('_', ' ').title()} {rate}"


@dataclass(frozen=True)
class ParsedLink:
    """A `(kind, id)` pair extracted from one input line."""

    kind: LinkKind
    id: str

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class QueueEntry:
    """One leaf item waiting in the resolution queue."""

    item_id: str
    kind: ItemKind
    group: str | None = None

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind.value}:{self.item_id}"


@dataclass
class AudioItem:
    """Resolved metadata for a single track or episode."""

    item_id: str
    kind: ItemKind
    name: str
    group_name: str
    contributors: list[str] = field(default_factory=list)
    covers: list[str] = field(default_factory=list)
    alternatives: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        if self.contributors:
            return f"{', '.join(self.contributors)} - {self.name}"
        return self.name


@dataclass
class ResolvedItem:
    """An item whose metadata, encoding and artwork are known but not yet fetched."""

    item: AudioItem
    audio_format: AudioFormat
    file_id: str
    cover_url: str | None = None


@dataclass
class AcquiredItem:
    """An item whose audio has been fetched and decrypted, ready for delivery."""

    item: AudioItem
    audio_format: AudioFormat
    payload: bytes = field(repr=False)
    cover_url: str | None = None

    @property
    def size(self) -> int:
        return len(self.payload)
