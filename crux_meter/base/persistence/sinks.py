"""
Record sinks: the persistence boundary.

The pipeline only builds the flat attribute mapping; a ``RecordSink`` decides
what storing it means and returns an opaque handle. Two implementations ship:
an in-memory sink for tests and embedding applications, and a logging sink
that emits one ``meter.sink.record`` JSON line per request.
"""
from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..logging import get_logger, log_event


@runtime_checkable
class RecordSink(Protocol):
    def record(self, attributes: Mapping[str, Any], tags: Sequence[str] = ()) -> Any:
        """Store one request record and return a handle for it."""
        ...


@dataclass(frozen=True)
class StoredRecord:
    """Handle returned by :class:`InMemoryRecordSink`."""

    id: str
    attributes: Dict[str, Any]
    tags: List[str] = field(default_factory=list)

    def __getitem__(self, key: str) -> Any:
        return self.attributes[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)


class InMemoryRecordSink:
    """Thread-safe list of stored records."""

    def __init__(self) -> None:
        self._records: List[StoredRecord] = []
        self._lock = threading.Lock()

    def record(self, attributes: Mapping[str, Any], tags: Sequence[str] = ()) -> StoredRecord:
        stored = StoredRecord(
            id=str(attributes.get("id") or uuid.uuid4().hex),
            attributes=dict(attributes),
            tags=list(tags),
        )
        with self._lock:
            self._records.append(stored)
        return stored

    @property
    def records(self) -> List[StoredRecord]:
        with self._lock:
            return list(self._records)

    def last(self) -> Optional[StoredRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


_SUMMARY_KEYS = (
    "id",
    "provider",
    "model",
    "snapshot",
    "model_type",
    "endpoint",
    "pricing_tier",
    "prompt_tokens",
    "completion_tokens",
    "total_cost_in_cents",
    "latency_ms",
    "status_code",
    "error_code",
)


class LoggingRecordSink:
    """Emit a compact summary of every record as a structured log line."""

    def __init__(self, logger_name: str = "meter.sink") -> None:
        self._logger = get_logger(logger_name)

    def record(self, attributes: Mapping[str, Any], tags: Sequence[str] = ()) -> Dict[str, Any]:
        summary = {k: attributes.get(k) for k in _SUMMARY_KEYS}
        log_event(self._logger, "meter.sink.record", tags=list(tags) or None, **summary)
        return dict(attributes)


__all__ = ["RecordSink", "StoredRecord", "InMemoryRecordSink", "LoggingRecordSink"]
