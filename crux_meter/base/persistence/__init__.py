"""Persistence boundary: flat attribute builder and record sinks."""

from .attributes import apply_provider_latency, build_attributes
from .sinks import InMemoryRecordSink, LoggingRecordSink, RecordSink, StoredRecord

__all__ = [
    "InMemoryRecordSink",
    "LoggingRecordSink",
    "RecordSink",
    "StoredRecord",
    "apply_provider_latency",
    "build_attributes",
]
