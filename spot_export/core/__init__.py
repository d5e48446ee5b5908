"""
Core export engine.

`ExportManager` coordinates the session: links are expanded into the
`ResolutionQueue`, then each queued item goes through the `ItemAcquirer`
and the `DeliverySink`.
"""

from .acquirer import ItemAcquirer, select_encoding
from .delivery import DeliveryOutcome, DeliverySink
from .export_manager import ExportManager
from .link_parser import parse_link, read_links
from .resolution_queue import LinkExpander, ResolutionQueue

__all__ = [
    "DeliveryOutcome",
    "DeliverySink",
    "ExportManager",
    "ItemAcquirer",
    "LinkExpander",
    "ResolutionQueue",
    "parse_link",
    "read_links",
    "select_encoding",
]
