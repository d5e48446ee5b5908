"""
Delivers acquired items to the filesystem, either by writing the audio
directly or by handing it to the external tagging helper.
"""

import asyncio
import logging
import os
from enum import Enum
from pathlib import Path

import aiohttp

from spot_export.exceptions import FileIntegrityError, HelperFailedError
from spot_export.media import Downloader, FileIntegrityChecker, run_helper, write_atomic
from spot_export.models.config import DeliveryMode, ExportConfig
from spot_export.models.items import AcquiredItem, AudioItem
from spot_export.utils.path import COVER_FILENAME, resolve_destination

log = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"


class DeliverySink:
    """
    Persists one item at a time. Delivery is idempotent: an item whose
    destination file already exists is skipped without any further work.
    """

    def __init__(self, config: ExportConfig, downloader: Downloader | None = None):
        self.output_dir = config.output_dir
        self.mode = config.delivery_mode
        self.helper_path = config.helper_path
        self.fetch_cover = config.fetch_cover
        self.verify_ogg = config.verify_ogg
        self.downloader = downloader or Downloader()

    def destination_for(self, item: AudioItem, group: str | None) -> Path:
        return resolve_destination(self.output_dir, group, item)

    def is_delivered(self, item: AudioItem, group: str | None) -> bool:
        return self.destination_for(item, group).exists()

    async def deliver(
        self, acquired: AcquiredItem, group: str | None
    ) -> DeliveryOutcome:
        """
        Writes or hands off one item.

        Raises:
            HelperFailedError: If the helper cannot run or exits non-zero.
            FileIntegrityError: If a directly written file fails verification.
            OSError: If the destination cannot be written.
        """
        destination = self.destination_for(acquired.item, group)
        if destination.exists():
            log.info(f"File '{destination}' already exists.")
            return DeliveryOutcome.SKIPPED

        if self.mode is DeliveryMode.DIRECT:
            await self._write_direct(acquired, destination)
        else:
            await self._deliver_via_helper(acquired, destination)
        return DeliveryOutcome.DELIVERED

    async def _write_direct(self, acquired: AcquiredItem, destination: Path) -> None:
        await write_atomic(destination, acquired.payload, tag=acquired.item.item_id)
        if self.verify_ogg and not await asyncio.to_thread(
            FileIntegrityChecker.check_ogg, str(destination)
        ):
            os.remove(destination)
            raise FileIntegrityError(
                f"Written file '{destination.name}' failed integrity check."
            )
        log.debug(f"Wrote {acquired.size} bytes to '{destination}'.")

    async def _stage_cover(self, cover_url: str, directory: Path) -> str:
        """
        Downloads the cover next to the destination and returns its path, or
        the original URL if the download fails.
        """
        cover_path = directory / COVER_FILENAME
        try:
            data = await self.downloader.fetch_bytes(cover_url)
            await write_atomic(cover_path, data, tag="cover")
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            log.warning(f"[yellow]Could not stage cover art: {e}[/yellow]")
            return cover_url
        return str(cover_path)

    async def _deliver_via_helper(
        self, acquired: AcquiredItem, destination: Path
    ) -> None:
        item = acquired.item
        cover_ref = acquired.cover_url or ""
        if self.fetch_cover and acquired.cover_url:
            cover_ref = await self._stage_cover(acquired.cover_url, destination.parent)

        args = [
            item.item_id,
            item.name,
            item.group_name,
            str(destination),
            cover_ref,
            *item.contributors,
        ]
        result = await run_helper(self.helper_path, args, acquired.payload)
        if not result.success:
            detail = f": {result.stderr}" if result.stderr else ""
            raise HelperFailedError(
                f"Helper script returned exit status {result.returncode}{detail}",
                result.returncode,
            )
