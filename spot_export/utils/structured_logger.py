"""
Structured logging for export events.
Every event is emitted as a `[event] key=value` console line and, when a log
directory is configured, as one JSON object per line for later grepping.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable events.

    Usage:
        logger = StructuredLogger("spot_export.events")
        logger.info("item_delivered", item_id="4uLU6hMCjMI75M1A2tKUQC", size_mb=7.1)
    """

    def __init__(self, name: str, log_dir: Path | None = None):
        """
        Args:
            name: Name of the underlying standard logger.
            log_dir: Directory for JSON line files (None = console only).
        """
        self.name = name
        self._logger = logging.getLogger(name)
        self._json_file: TextIO | None = None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"spot_export_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    @property
    def json_enabled(self) -> bool:
        return self._json_file is not None and not self._json_file.closed

    @staticmethod
    def format_message(event: str, **context) -> str:
        parts = [f"[{event}]"]
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self.json_enabled:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }
        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def log(self, level: int, event: str, **context) -> None:
        self._logger.log(level, self.format_message(event, **context))
        self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self.log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self.log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self.log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self.log(logging.ERROR, event, **context)

    def close(self) -> None:
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ExportLogger:
    """Specialized logger for link and item events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def session_started(self, links: int, mode: str, output_dir: Path):
        self.logger.info(
            "session_started", links=links, mode=mode, output_dir=str(output_dir)
        )

    def link_expanded(self, uri: str, added: int, group: str | None = None):
        self.logger.info("link_expanded", uri=uri, added=added, group=group)

    def link_failed(self, uri: str, error: str):
        self.logger.error("link_failed", uri=uri, error=error)

    def item_started(self, uri: str, position: int, total: int):
        self.logger.debug("item_started", uri=uri, position=f"{position}/{total}")

    def item_delivered(self, uri: str, name: str, size_bytes: int, audio_format: str):
        self.logger.info(
            "item_delivered",
            uri=uri,
            name=name,
            size_mb=round(size_bytes / (1024 * 1024), 2),
            format=audio_format,
        )

    def item_skipped(self, uri: str, path: Path, reason: str = "exists"):
        self.logger.info("item_skipped", uri=uri, path=str(path), reason=reason)

    def item_failed(self, uri: str, stage: str, error: str):
        self.logger.error("item_failed", uri=uri, stage=stage, error=error)

    def session_completed(
        self,
        duration_s: float,
        delivered: int,
        skipped: int,
        failed: int,
        total_size_bytes: int,
    ):
        self.logger.info(
            "session_completed",
            duration_s=round(duration_s, 2),
            delivered=delivered,
            skipped=skipped,
            failed=failed,
            total_size_mb=round(total_size_bytes / (1024 * 1024), 2),
        )

    def close(self) -> None:
        self.logger.close()


def create_export_logger(log_dir: Path | None = None) -> ExportLogger:
    """Creates the event logger used by an export session."""
    return ExportLogger(StructuredLogger("spot_export.events", log_dir=log_dir))
