"""Event models for the analytics client pipeline.

Records flow through the client as plain dictionaries shaped like the
collector's JSON: track() -> Validator -> Enricher -> EventQueue -> EventBatcher -> HTTPSender
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

EventRecord = Dict[str, Any]
EntryCallback = Callable[[Optional[BaseException]], None]
FlushCallback = Callable[[Optional[BaseException], Optional["Batch"]], None]

TRACK = "track"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def json_default(value: Any) -> Any:
    """Serialize values json does not handle natively."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def dumps(payload: Any, **kwargs: Any) -> str:
    return json.dumps(payload, default=json_default, **kwargs)


def noop(*args: Any) -> None:
    pass


@dataclass
class QueueEntry:
    """An enriched record waiting for delivery, with its completion callback."""

    message: EventRecord
    callback: EntryCallback = noop


@dataclass(frozen=True)
class Batch:
    """An ordered snapshot of records sent together in one request."""

    messages: Tuple[EventRecord, ...] = ()
    timestamp: datetime = field(default_factory=utcnow)
    sent_at: datetime = field(default_factory=utcnow)

    def size(self) -> int:
        """Return the number of records in this batch."""
        return len(self.messages)

    def to_dict(self) -> Dict[str, Any]:
        """Convert batch to dictionary for the collector payload."""
        return {
            "batch": list(self.messages),
            "timestamp": self.timestamp,
            "sentAt": self.sent_at,
        }

    def to_json(self) -> str:
        return dumps(self.to_dict())
