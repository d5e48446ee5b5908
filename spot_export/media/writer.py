"""
Writes decrypted audio to disk without ever leaving a partial file at the
final destination.
"""

import logging
import os
from pathlib import Path

import aiofiles

log = logging.getLogger(__name__)


def temp_path_for(destination: Path, tag: str) -> Path:
    """
    Short hidden sibling of `destination`. The name does not embed the
    destination's own name, which may already be at the filesystem limit.
    """
    return destination.with_name(f".{tag}.part")


async def write_atomic(destination: Path, payload: bytes, tag: str = "download") -> int:
    """
    Writes `payload` to a temporary sibling of `destination` and renames it
    into place. The temporary file is removed if anything fails.

    Returns:
        The number of bytes written.
    """
    temp_path = temp_path_for(destination, tag)
    try:
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(payload)
            await f.flush()
        os.replace(temp_path, destination)
    finally:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            log.debug(f"Could not remove temporary file '{temp_path}': {e}")
    return len(payload)
