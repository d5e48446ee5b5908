"""
Dataclass for tracking export session statistics.
"""

import time
from collections import Counter
from dataclasses import dataclass, field


@dataclass
class ExportStats:
    """Tracks statistics for an export session."""

    links_read: int = 0
    links_failed: int = 0
    items_queued: int = 0
    items_delivered: int = 0
    items_skipped_exists: int = 0
    items_failed: int = 0
    total_size_delivered: int = 0
    failure_reasons: Counter = field(default_factory=Counter)
    failed_items: list[str] = field(default_factory=list)
    _start_time: float = field(default_factory=time.monotonic, repr=False)

    def record_failure(self, item_uri: str, reason: str) -> None:
        self.items_failed += 1
        self.failure_reasons[reason] += 1
        self.failed_items.append(item_uri)

    def record_delivery(self, size_bytes: int) -> None:
        self.items_delivered += 1
        self.total_size_delivered += size_bytes

    @property
    def items_processed(self) -> int:
        return self.items_delivered + self.items_skipped_exists + self.items_failed

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start_time
