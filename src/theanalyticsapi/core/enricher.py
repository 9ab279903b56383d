"""Message enricher for turning caller events into delivery-ready records.

The enricher adds the fields the collector expects on every record: the
type tag, library context, runtime metadata, a timestamp and a message id.
Library and runtime identity are injected at construction so the enricher
never reads process state itself.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from typing import Any, Mapping

from .events import EventRecord, dumps, utcnow


class MessageEnricher:
    """Normalizes raw caller events into records ready for the queue."""

    def __init__(self, library_name: str, library_version: str, runtime_version: str):
        """Initialize the enricher.

        Args:
            library_name: Name reported under ``context.library``
            library_version: Version reported under ``context.library``
            runtime_version: Python version reported under ``_metadata``
        """
        self.library_name = library_name
        self.library_version = library_version
        self.runtime_version = runtime_version

    def enrich(self, message: Mapping[str, Any], type_: str) -> EventRecord:
        """Return an enriched copy of ``message``; the original is left untouched.

        Args:
            message: Caller supplied event
            type_: Record type tag, "track" for this client

        Returns:
            Enriched record
        """
        record = dict(message)
        record["type"] = type_

        record["context"] = {
            "library": {
                "name": self.library_name,
                "version": self.library_version,
            },
            **(record.get("context") or {}),
        }

        record["_metadata"] = {
            "pythonVersion": self.runtime_version,
            **(record.get("_metadata") or {}),
        }

        if not record.get("timestamp"):
            record["timestamp"] = utcnow()

        if not record.get("messageId"):
            # Hashing the content keeps ids distinct even if uuid4 falls back to a weak random source
            record["messageId"] = self.generate_message_id(record)

        for key in ("anonymousId", "userId"):
            value = record.get(key)
            if value is not None and not isinstance(value, str):
                record[key] = json.dumps(value, separators=(",", ":"), default=str)

        return record

    @staticmethod
    def generate_message_id(record: Mapping[str, Any]) -> str:
        digest = hashlib.md5(dumps(record).encode("utf-8")).hexdigest()
        return f"python-{digest}-{uuid.uuid4()}"
