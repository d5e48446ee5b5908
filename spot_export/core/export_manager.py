"""
The main orchestrator: builds the resolution queue from input links and
drains it one item at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from rich.markup import escape

from spot_export.api.session import SessionClient
from spot_export.exceptions import (
    AcquisitionError,
    DeliveryError,
    FileIntegrityError,
    HelperFailedError,
    NoCoverArtError,
    NoUsableEncodingError,
    UnavailableError,
)
from spot_export.models.config import ExportConfig
from spot_export.models.items import ParsedLink, QueueEntry
from spot_export.models.stats import ExportStats
from spot_export.utils.formatting import format_contributors
from spot_export.utils.path import create_dir, remove_dir_if_empty
from spot_export.utils.structured_logger import ExportLogger, create_export_logger

from .acquirer import ItemAcquirer
from .delivery import DeliveryOutcome, DeliverySink
from .resolution_queue import LinkExpander, ResolutionQueue

log = logging.getLogger(__name__)

_REASON_CODES: list[tuple[type[Exception], str]] = [
    (UnavailableError, "unavailable"),
    (NoUsableEncodingError, "no_usable_encoding"),
    (NoCoverArtError, "no_cover_art"),
    (AcquisitionError, "acquisition_failed"),
    (HelperFailedError, "helper_failed"),
    (FileIntegrityError, "integrity_failed"),
    (DeliveryError, "delivery_failed"),
    (OSError, "write_failed"),
]


def reason_code(error: Exception) -> str:
    """Short, stable code for a per-item failure."""
    for error_type, code in _REASON_CODES:
        if isinstance(error, error_type):
            return code
    return "unexpected"


class ExportManager:
    """Orchestrates the entire export process."""

    def __init__(
        self,
        config: ExportConfig,
        session: SessionClient,
        events: ExportLogger | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.session = session
        self.events = events or create_export_logger()
        self.stats = ExportStats()
        self.acquirer = ItemAcquirer(session, require_cover=config.requires_cover)
        self.sink = DeliverySink(config)
        self._sleep = sleep

    async def execute(self, links: list[ParsedLink]) -> ExportStats:
        """Expands all links, then exports every queued item."""
        if not links:
            log.info("No links provided. Nothing to do.")
            return self.stats

        self.events.session_started(
            len(links), self.config.delivery_mode.value, self.config.output_dir
        )
        queue = await self.build_queue(links)
        log.info(f"Queued {len(queue)} items from {len(links)} links.")
        await self.run(queue)
        log.info(
            f"Processed {self.stats.items_processed} of {len(queue)} items: "
            f"{self.stats.items_delivered} delivered, "
            f"{self.stats.items_skipped_exists} already present, "
            f"{self.stats.items_failed} failed."
        )

        self.events.session_completed(
            duration_s=self.stats.elapsed,
            delivered=self.stats.items_delivered,
            skipped=self.stats.items_skipped_exists,
            failed=self.stats.items_failed,
            total_size_bytes=self.stats.total_size_delivered,
        )
        return self.stats

    async def build_queue(self, links: list[ParsedLink]) -> ResolutionQueue:
        expander = LinkExpander(
            self.session,
            group_by_container=self.config.group_by_container,
            events=self.events,
        )
        queue = await expander.expand_all(links)
        self.stats.links_read += len(links)
        self.stats.links_failed += len(expander.failed_links)
        self.stats.items_queued += len(queue)
        return queue

    async def run(self, queue: ResolutionQueue) -> ExportStats:
        """
        Processes the queue in insertion order. A failing item never stops the
        run. Items are spaced by the pacing interval to avoid rate limiting.
        """
        entries = queue.entries()
        total = len(entries)
        for position, entry in enumerate(entries, start=1):
            self.events.item_started(entry.uri, position, total)
            await self._process_entry(entry)
            if position < total and self.config.pacing_seconds > 0:
                await self._sleep(self.config.pacing_seconds)
        return self.stats

    def _fail(
        self,
        entry: QueueEntry,
        stage: str,
        error: Exception,
        directory: Path | None = None,
    ) -> None:
        code = reason_code(error)
        self.stats.record_failure(entry.uri, code)
        self.events.item_failed(entry.uri, stage, f"{code}: {error}")
        # A group directory made for this item must not outlive it.
        if entry.group and directory is not None:
            remove_dir_if_empty(directory)

    async def _process_entry(self, entry: QueueEntry) -> None:
        directory = (
            self.config.output_dir / entry.group
            if entry.group
            else self.config.output_dir
        )
        try:
            create_dir(directory)
        except OSError as e:
            log.error(f"[red]✗ Could not create or access '{directory}': {e}[/red]")
            self._fail(entry, "directory", e)
            return

        try:
            resolved = await self.acquirer.resolve(entry)
            item = resolved.item
            if self.sink.is_delivered(item, entry.group):
                destination = self.sink.destination_for(item, entry.group)
                self.stats.items_skipped_exists += 1
                log.info(
                    f"  [yellow]○ Skipping:[/] [dim]{escape(destination.name)}[/dim]"
                    " (already exists)"
                )
                self.events.item_skipped(entry.uri, destination)
                return
            acquired = await self.acquirer.fetch(resolved)
        except AcquisitionError as e:
            log.warning(f"[yellow]✗ Error processing audio item: {e}[/yellow]")
            self._fail(entry, "acquire", e, directory)
            return
        except Exception as e:
            log.error(
                f"[red]✗ Unexpected error acquiring {entry.uri}: {e}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            self._fail(entry, "acquire", e, directory)
            return

        try:
            outcome = await self.sink.deliver(acquired, entry.group)
        except (DeliveryError, OSError) as e:
            log.error(f"[red]✗ Failed:[/] {escape(item.display_name)} ({e})")
            self._fail(entry, "deliver", e, directory)
            return
        except Exception as e:
            log.error(
                f"[red]✗ Unexpected error delivering {entry.uri}: {e}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            self._fail(entry, "deliver", e, directory)
            return

        if outcome is DeliveryOutcome.SKIPPED:
            self.stats.items_skipped_exists += 1
            self.events.item_skipped(
                entry.uri, self.sink.destination_for(item, entry.group)
            )
            return

        self.stats.record_delivery(acquired.size)
        label = f"{format_contributors(item.contributors)} - {item.name}"
        log.info(
            f"  [green]✓ {escape(label)}[/green] "
            f"[dim]({acquired.audio_format.label})[/dim]"
        )
        self.events.item_delivered(
            entry.uri, item.display_name, acquired.size, acquired.audio_format.name
        )
