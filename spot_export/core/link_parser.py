"""
Extracts `(kind, id)` pairs from free-text input lines.
"""

import logging
import re
from collections.abc import Iterable, Iterator

from spot_export.models.items import LinkKind, ParsedLink

log = logging.getLogger(__name__)

# Matches both `open.spotify.com/track/<id>` and `spotify:track:<id>`. Kinds beyond
# the supported ones are matched so they can be reported as unsupported.
LINK_PATTERN = re.compile(
    r"\b(?P<kind>playlist|album|track|episode|show|artist|user|audiobook|chapter)"
    r"[/:](?P<id>[a-zA-Z0-9]+)"
)
DONE_SENTINEL = "done"


def parse_link(line: str) -> ParsedLink | None:
    """
    Parses one line into a link. Lines without a recognizable link yield
    None; recognized but unsupported kinds are reported and yield None.
    """
    matches = list(LINK_PATTERN.finditer(line))
    if not matches:
        log.debug(f"Skipping line without a link: {line!r}")
        return None

    # Legacy `spotify:user:<name>:playlist:<id>` URIs carry two prefixes.
    for match in matches:
        try:
            kind = LinkKind(match.group("kind"))
        except ValueError:
            continue
        return ParsedLink(kind=kind, id=match.group("id"))

    log.warning(
        f"[yellow]Unknown/unsupported item type: {matches[0].group('kind')}[/yellow]"
    )
    return None


def iter_lines(stream: Iterable[str]) -> Iterator[str]:
    """
    Yields stripped lines until the `done` sentinel or the end of the stream.
    A line that cannot be read is logged and skipped.
    """
    iterator = iter(stream)
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except (UnicodeDecodeError, OSError) as e:
            log.warning(f"[yellow]Could not read input line: {e}[/yellow]")
            continue

        line = line.strip()
        if line == DONE_SENTINEL:
            return
        if not line or line.startswith("#"):
            continue
        yield line


def read_links(stream: Iterable[str]) -> list[ParsedLink]:
    """Reads every parsable link from the stream, in input order."""
    links = []
    for line in iter_lines(stream):
        if link := parse_link(line):
            links.append(link)
    return links
