import io

import pytest

from spot_export.core.link_parser import iter_lines, parse_link, read_links
from spot_export.models.items import LinkKind, ParsedLink


@pytest.mark.parametrize(
    "line, kind, item_id",
    [
        (
            "https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC?si=abc123",
            LinkKind.TRACK,
            "4uLU6hMCjMI75M1A2tKUQC",
        ),
        ("spotify:album:1DFixLWuPkv3KT3TnV35m3", LinkKind.ALBUM, "1DFixLWuPkv3KT3TnV35m3"),
        (
            "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M",
            LinkKind.PLAYLIST,
            "37i9dQZF1DXcBWIGoYBM5M",
        ),
        ("spotify:episode:512ojhOuo1ktJprKbVcKyQ", LinkKind.EPISODE, "512ojhOuo1ktJprKbVcKyQ"),
        (
            "  https://open.spotify.com/show/4rOoJ6Egrf8K2IrywzwOMk  ",
            LinkKind.SHOW,
            "4rOoJ6Egrf8K2IrywzwOMk",
        ),
        (
            "spotify:user:someone:playlist:37i9dQZF1DXcBWIGoYBM5M",
            LinkKind.PLAYLIST,
            "37i9dQZF1DXcBWIGoYBM5M",
        ),
    ],
)
def test_parse_supported_links(line, kind, item_id):
    assert parse_link(line) == ParsedLink(kind=kind, id=item_id)


def test_parse_line_without_link_is_skipped():
    assert parse_link("just some words") is None
    assert parse_link("https://example.com/") is None


def test_parse_unsupported_kind_warns(caplog):
    line = "https://open.spotify.com/artist/0OdUWJ0sBjDrqHygGUXeCF"
    assert parse_link(line) is None
    assert "unsupported" in caplog.text


def test_uri_of_parsed_link():
    link = ParsedLink(kind=LinkKind.TRACK, id="abc")
    assert link.uri == "spotify:track:abc"


def test_read_links_stops_at_done():
    stream = io.StringIO(
        "spotify:track:aaa\n"
        "\n"
        "# a comment with track/zzz\n"
        "not a link\n"
        "spotify:track:aaa\n"
        "  done  \n"
        "spotify:track:bbb\n"
    )
    links = read_links(stream)
    # Duplicates are left for the queue to collapse.
    assert links == [
        ParsedLink(LinkKind.TRACK, "aaa"),
        ParsedLink(LinkKind.TRACK, "aaa"),
    ]


def test_read_links_until_end_of_stream():
    stream = io.StringIO("spotify:album:aaa\nspotify:show:bbb")
    assert [link.kind for link in read_links(stream)] == [
        LinkKind.ALBUM,
        LinkKind.SHOW,
    ]


def test_unreadable_line_is_skipped():
    class FlakyStream:
        def __init__(self):
            self._lines = iter(["spotify:track:aaa\n", None, "spotify:track:bbb\n"])

        def __iter__(self):
            return self

        def __next__(self):
            line = next(self._lines)
            if line is None:
                raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
            return line

    assert list(iter_lines(FlakyStream())) == ["spotify:track:aaa", "spotify:track:bbb"]
