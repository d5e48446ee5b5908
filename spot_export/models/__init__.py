"""
Data Models Layer.

This package contains the data structures used throughout the application:
the validated configuration, the queue and item records and session statistics.
"""

from .config import DeliveryMode, ExportConfig
from .items import (
    AcquiredItem,
    AudioFormat,
    AudioItem,
    ItemKind,
    LinkKind,
    ParsedLink,
    QueueEntry,
    ResolvedItem,
)
from .stats import ExportStats

__all__ = [
    "AcquiredItem",
    "AudioFormat",
    "AudioItem",
    "DeliveryMode",
    "ExportConfig",
    "ExportStats",
    "ItemKind",
    "LinkKind",
    "ParsedLink",
    "QueueEntry",
    "ResolvedItem",
]
