"""
The resolution queue: a deduplicating, insertion-ordered work list of leaf
items, and the expander that fills it from parsed links.
"""

import logging
from collections.abc import Iterator

from spot_export.api.session import SessionClient
from spot_export.exceptions import ContainerExpansionError
from spot_export.models.items import ItemKind, LinkKind, ParsedLink, QueueEntry
from spot_export.utils.path import UNGROUPED_BUCKET, group_label
from spot_export.utils.structured_logger import ExportLogger

log = logging.getLogger(__name__)

GROUP_PREFIXES = {
    LinkKind.PLAYLIST: "playlists",
    LinkKind.ALBUM: "albums",
    LinkKind.SHOW: "shows",
}


class ResolutionQueue:
    """
    Maps item IDs to queue entries. The first insertion of an ID wins: adding
    it again keeps its original position, kind and group.
    """

    def __init__(self) -> None:
        self._entries: dict[str, QueueEntry] = {}

    def add(self, item_id: str, kind: ItemKind, group: str | None = None) -> bool:
        """Inserts an item. Returns False if the ID was already queued."""
        if item_id in self._entries:
            return False
        self._entries[item_id] = QueueEntry(item_id=item_id, kind=kind, group=group)
        return True

    def entries(self) -> list[QueueEntry]:
        return list(self._entries.values())

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._entries

    def __iter__(self) -> Iterator[QueueEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)


class LinkExpander:
    """Expands parsed links into leaf items, fetching containers as needed."""

    def __init__(
        self,
        session: SessionClient,
        queue: ResolutionQueue | None = None,
        group_by_container: bool = False,
        events: ExportLogger | None = None,
    ):
        self.session = session
        self.queue = queue if queue is not None else ResolutionQueue()
        self.group_by_container = group_by_container
        self.events = events
        self.failed_links: list[str] = []

    def _group_for(self, kind: LinkKind, name: str | None = None) -> str | None:
        if not self.group_by_container:
            return None
        if name is None:
            return UNGROUPED_BUCKET
        return group_label(GROUP_PREFIXES[kind], name)

    async def _fetch_container(
        self, link: ParsedLink
    ) -> tuple[str, list[tuple[ItemKind, str]]]:
        """Returns the container's name and its leaf items in queue order."""
        try:
            if link.kind is LinkKind.ALBUM:
                album = await self.session.fetch_album(link.id)
                return album.name, [(ItemKind.TRACK, tid) for tid in album.track_ids]
            if link.kind is LinkKind.PLAYLIST:
                playlist = await self.session.fetch_playlist(link.id)
                return playlist.name, list(playlist.items)
            show = await self.session.fetch_show(link.id)
        except Exception as e:
            raise ContainerExpansionError(
                f"Could not fetch {link.kind.value} {link.id}: {e}"
            ) from e
        # Shows list their episodes newest first.
        episodes = [(ItemKind.EPISODE, eid) for eid in reversed(show.episode_ids)]
        return show.name, episodes

    async def expand(self, link: ParsedLink) -> int:
        """
        Adds the items a link refers to. Returns the number of new entries.

        Raises:
            ContainerExpansionError: If a container's metadata cannot be fetched.
                Nothing is queued for that link.
        """
        if not link.kind.is_container:
            kind = ItemKind(link.kind.value)
            return int(self.queue.add(link.id, kind, self._group_for(link.kind)))

        name, items = await self._fetch_container(link)
        group = self._group_for(link.kind, name)
        added = sum(self.queue.add(item_id, kind, group) for kind, item_id in items)
        log.debug(
            f"Expanded {link.kind.value} '{name}': {len(items)} items, {added} new."
        )
        if self.events:
            self.events.link_expanded(link.uri, added, group)
        return added

    async def expand_all(self, links: list[ParsedLink]) -> ResolutionQueue:
        """
        Expands every link in order. A link that fails to expand is logged
        and dropped; the others are unaffected.
        """
        for link in links:
            try:
                await self.expand(link)
            except ContainerExpansionError as e:
                log.error(f"[red]✗ {e}[/red]")
                self.failed_links.append(link.uri)
                if self.events:
                    self.events.link_failed(link.uri, str(e))
        return self.queue
