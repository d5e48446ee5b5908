"""
Utilities for building sanitized file and directory names.
"""

import logging
from pathlib import Path

from pathvalidate import sanitize_filename

from spot_export.models.items import AudioItem

log = logging.getLogger(__name__)

AUDIO_EXTENSION = "ogg"
COVER_FILENAME = "cover.jpg"
UNGROUPED_BUCKET = "tracks"

# Leaves room for the extension within the usual 255 byte limit.
_MAX_STEM_LENGTH = 250


def sanitize_name(name: str, fallback: str = "Unknown") -> str:
    """
    Removes filesystem-reserved characters from a single path component.
    Applying it to an already sanitized name returns the name unchanged.
    """
    sanitized = sanitize_filename(
        name.strip(),
        replacement_text="_",
        platform="universal",
        max_len=_MAX_STEM_LENGTH,
    ).strip()
    return sanitized or fallback


def build_filename(item: AudioItem) -> str:
    """Returns the `<contributors> - <title>.ogg` file name for an item."""
    stem = item.name
    if item.contributors:
        stem = f"{', '.join(item.contributors)} - {item.name}"
    return f"{sanitize_name(stem)}.{AUDIO_EXTENSION}"


def group_label(prefix: str, container_name: str) -> str:
    """Builds a destination group such as `playlists/<name>`."""
    return f"{prefix}/{sanitize_name(container_name)}"


def resolve_destination(output_dir: Path, group: str | None, item: AudioItem) -> Path:
    """Full destination path of an item inside the output directory."""
    base = output_dir / group if group else output_dir
    return base / build_filename(item)


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def remove_dir_if_empty(
    directory_path: Path, ignore: tuple[str, ...] = (COVER_FILENAME,)
) -> bool:
    """
    Removes a directory when nothing but staged artwork was written into it.
    """
    try:
        if not directory_path.is_dir():
            return False
        contents = list(directory_path.iterdir())
        if all(path.name in ignore for path in contents):
            for path in contents:
                path.unlink()
            directory_path.rmdir()
            log.debug(f"Removed empty directory '{directory_path}'.")
            return True
    except OSError as e:
        log.debug(f"Could not remove directory '{directory_path}': {e}")
    return False
