"""
Export events to a file for batch import.

Each event is written as one JSON object per line, the format read by the
Event Server's batch import tool.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .events import Clock, EventBuilderMixin, Timestamp, build_event, local_now

logger = logging.getLogger(__name__)


class FileExporter(EventBuilderMixin):
    """
    Writes events to a newline-delimited JSON file.

    Example:
        with FileExporter("events.json") as exporter:
            exporter.set_user("u1", {"age": 31})
            exporter.record_user_action_on_item("buy", "u1", "i1")
    """

    def __init__(self, path: Union[str, Path], clock: Optional[Clock] = None):
        self.path = Path(path)
        self.clock = clock or local_now
        self.count = 0
        self._file = open(self.path, "w", encoding="utf-8")

    def __enter__(self) -> "FileExporter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def closed(self) -> bool:
        return self._file.closed

    def create_event(
        self,
        event: str,
        entity_type: str,
        entity_id: str,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        event_time: Optional[Timestamp] = None,
        target_entity_type: Optional[str] = None,
        target_entity_id: Optional[str] = None,
        pr_id: Optional[str] = None
    ) -> dict:
        """Write one event and return the JSON object written."""
        record = build_event(
            event,
            entity_type,
            entity_id,
            properties,
            event_time=event_time,
            target_entity_type=target_entity_type,
            target_entity_id=target_entity_id,
            pr_id=pr_id
        ).to_dict(self.clock)
        self._file.write(json.dumps(record))
        self._file.write("\n")
        self.count += 1
        return record

    def close(self):
        if not self._file.closed:
            self._file.close()
            logger.info(f"Exported {self.count} events to {self.path}")
