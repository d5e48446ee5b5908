"""
Provides a post-write integrity check for Ogg Vorbis files.
"""

import logging

from mutagen import MutagenError
from mutagen.oggvorbis import OggVorbis

log = logging.getLogger(__name__)


class FileIntegrityChecker:
    """A collection of static methods for validating media file integrity."""

    @staticmethod
    def check_ogg(filepath: str) -> bool:
        """
        Performs a basic integrity check on an Ogg Vorbis file.

        Checks if the file can be opened by mutagen and has valid stream info.

        Args:
            filepath: Path to the Ogg file.

        Returns:
            True if the file appears to be a valid Ogg Vorbis file, False otherwise.
        """
        try:
            audio = OggVorbis(filepath)
            if audio.info and audio.info.length > 0:
                return True
            log.warning(
                f"Ogg integrity check failed for '{filepath}': No valid stream info."
            )
            return False
        except MutagenError as e:
            log.warning(f"Ogg integrity check failed for '{filepath}': {e}")
            return False
