from unittest.mock import MagicMock

from spot_export.api.session import AlbumRecord, PlaylistRecord, ShowRecord
from spot_export.core.resolution_queue import LinkExpander, ResolutionQueue
from spot_export.models.items import ItemKind, LinkKind, ParsedLink


def test_queue_first_insertion_wins():
    queue = ResolutionQueue()
    assert queue.add("a", ItemKind.TRACK, "albums/One")
    assert queue.add("b", ItemKind.TRACK)
    assert not queue.add("a", ItemKind.EPISODE, "playlists/Two")

    assert len(queue) == 2
    assert "a" in queue
    first = queue.entries()[0]
    assert (first.item_id, first.kind, first.group) == ("a", ItemKind.TRACK, "albums/One")
    assert [entry.item_id for entry in queue] == ["a", "b"]


async def test_same_item_from_overlapping_containers_is_queued_once(session):
    session.albums["al"] = AlbumRecord(id="al", name="Album", track_ids=["t1", "t2"])
    session.playlists["pl"] = PlaylistRecord(
        id="pl",
        name="Mix",
        items=[(ItemKind.TRACK, "t2"), (ItemKind.EPISODE, "e1"), (ItemKind.TRACK, "t3")],
    )
    expander = LinkExpander(session)

    queue = await expander.expand_all(
        [
            ParsedLink(LinkKind.TRACK, "t2"),
            ParsedLink(LinkKind.ALBUM, "al"),
            ParsedLink(LinkKind.PLAYLIST, "pl"),
            ParsedLink(LinkKind.TRACK, "t1"),
        ]
    )

    assert [(e.item_id, e.kind) for e in queue] == [
        ("t2", ItemKind.TRACK),
        ("t1", ItemKind.TRACK),
        ("e1", ItemKind.EPISODE),
        ("t3", ItemKind.TRACK),
    ]


async def test_show_episodes_are_queued_oldest_first(session):
    session.shows["sh"] = ShowRecord(id="sh", name="Pod", episode_ids=["e3", "e2", "e1"])
    queue = await LinkExpander(session).expand_all([ParsedLink(LinkKind.SHOW, "sh")])

    assert [e.item_id for e in queue] == ["e1", "e2", "e3"]
    assert all(e.kind is ItemKind.EPISODE for e in queue)


async def test_grouping_labels_follow_container(session):
    session.albums["al"] = AlbumRecord(id="al", name="Best Of: Vol/1", track_ids=["t1"])
    session.shows["sh"] = ShowRecord(id="sh", name="Pod", episode_ids=["e1"])
    expander = LinkExpander(session, group_by_container=True)

    queue = await expander.expand_all(
        [
            ParsedLink(LinkKind.ALBUM, "al"),
            ParsedLink(LinkKind.SHOW, "sh"),
            ParsedLink(LinkKind.TRACK, "t9"),
        ]
    )

    groups = {e.item_id: e.group for e in queue}
    assert groups["t1"].startswith("albums/")
    assert "/" not in groups["t1"].removeprefix("albums/")
    assert groups["e1"] == "shows/Pod"
    assert groups["t9"] == "tracks"


async def test_flat_mode_has_no_groups(session):
    session.albums["al"] = AlbumRecord(id="al", name="Album", track_ids=["t1"])
    queue = await LinkExpander(session).expand_all([ParsedLink(LinkKind.ALBUM, "al")])
    assert queue.entries()[0].group is None


async def test_failed_container_does_not_affect_other_links(session):
    session.albums["ok"] = AlbumRecord(id="ok", name="Album", track_ids=["t2"])
    events = MagicMock()
    expander = LinkExpander(session, events=events)

    queue = await expander.expand_all(
        [
            ParsedLink(LinkKind.TRACK, "t1"),
            ParsedLink(LinkKind.PLAYLIST, "missing"),
            ParsedLink(LinkKind.ALBUM, "ok"),
        ]
    )

    assert [e.item_id for e in queue] == ["t1", "t2"]
    assert expander.failed_links == ["spotify:playlist:missing"]
    events.link_failed.assert_called_once()
    assert events.link_failed.call_args.args[0] == "spotify:playlist:missing"


async def test_expand_returns_new_entry_count(session):
    session.albums["al"] = AlbumRecord(id="al", name="Album", track_ids=["t1", "t2"])
    expander = LinkExpander(session)

    assert await expander.expand(ParsedLink(LinkKind.TRACK, "t1")) == 1
    assert await expander.expand(ParsedLink(LinkKind.ALBUM, "al")) == 1
    assert await expander.expand(ParsedLink(LinkKind.TRACK, "t2")) == 0
