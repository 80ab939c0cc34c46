"""
Change feed: one logical channel per table.

The store publishes a ChangeEvent after every successful write. Subscribers get a
"this table changed" signal and re-read the whole table; no delta is applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    record_id: Any = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeHandler = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe(); call close() to stop receiving."""

    def __init__(self, feed: "ChangeFeed", table: str, handler: ChangeHandler) -> None:
        self.feed = feed
        self.table = table
        self.handler = handler

    def close(self) -> None:
        self.feed.unsubscribe(self.table, self.handler)


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = RLock()
        self._channels: Dict[str, List[ChangeHandler]] = {}

    def subscribe(self, table: str, handler: ChangeHandler) -> Subscription:
        with self._lock:
            self._channels.setdefault(table, []).append(handler)
        return Subscription(self, table, handler)

    def unsubscribe(self, table: str, handler: ChangeHandler) -> None:
        with self._lock:
            handlers = self._channels.get(table, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            handlers = list(self._channels.get(event.table, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "change_handler_failed",
                    extra={"table": event.table, "event_type": event.event_type},
                )

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._channels.get(table, []))

    def clear(self) -> None:
        with self._lock:
            self._channels.clear()
