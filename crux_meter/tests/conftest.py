"""Shared fixtures for the metering test suite.

Registry and catalog are built once per session from the packaged provider
declarations and YAML documents; both are read-only after construction so
sharing them across tests is safe. Meter instances are per test and write to
an in-memory sink.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import pytest

from crux_meter.base.factory import build_registry
from crux_meter.base.handlers.registry import HandlerRegistry
from crux_meter.base.logging import get_logger
from crux_meter.base.persistence.sinks import InMemoryRecordSink
from crux_meter.base.pricing.catalog import PricingCatalog
from crux_meter.config import MeterSettings, reset_settings_cache
from crux_meter.config.defaults import BUILTIN_PROVIDERS
from crux_meter.config.env import provider_var
from crux_meter.meter import Meter, set_meter


@pytest.fixture(scope="session")
def registry() -> HandlerRegistry:
    return build_registry()


@pytest.fixture(scope="session")
def catalog() -> PricingCatalog:
    return PricingCatalog.from_directory()


@pytest.fixture()
def fake_clock(monkeypatch):
    """Provide a deterministic perf_counter sequence.

    Usage: fake_clock.advance(ms) to move time forward.
    """
    state = {"t": 1000.0}

    def perf_counter():
        return state["t"]

    def advance(ms: float):
        state["t"] += ms / 1000.0

    monkeypatch.setattr(time, "perf_counter", perf_counter)
    return type("Clock", (), {"advance": staticmethod(advance)})


class FakeMediaStore:
    """Media store double: keeps written blobs in memory and serves canned downloads."""

    def __init__(self, downloads: Optional[Mapping[str, Tuple[bytes, Optional[str]]]] = None) -> None:
        self.stored: Dict[str, bytes] = {}
        self.fetched: List[Tuple[str, Optional[Mapping[str, str]]]] = []
        self.downloads = dict(downloads or {})

    def store(self, request_id: str, index: int, content: bytes, extension: str) -> str:
        path = f"mem://{request_id}/{index}.{extension}"
        self.stored[path] = content
        return path

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None):
        self.fetched.append((url, headers))
        return self.downloads.get(url)


@pytest.fixture()
def media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture()
def memory_sink() -> InMemoryRecordSink:
    return InMemoryRecordSink()


@pytest.fixture()
def meter(registry, catalog, memory_sink) -> Iterator[Meter]:
    """Meter with default switches writing to an in-memory sink."""
    instance = Meter(settings=MeterSettings(), registry=registry, catalog=catalog, sink=memory_sink)
    yield instance
    # a test that parked a streamed context must not leak it into the next one
    instance.consume_pending_stream_context()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch) -> Iterator[None]:
    """Keep settings resolution independent of the developer's environment."""
    for var in (
        "METER_CONFIG_FILE",
        "METER_CATALOG_PATH",
        "METER_ENABLED",
        "METER_COSTS_ENABLED",
        "METER_MEDIA_ENABLED",
        "METER_MEDIA_PATH",
        "METER_STORE_EMBEDDINGS",
    ):
        monkeypatch.delenv(var, raising=False)
    for provider in BUILTIN_PROVIDERS:
        monkeypatch.delenv(provider_var(provider, "DEFAULT_TIER"), raising=False)
        monkeypatch.delenv(provider_var(provider, "BASE_URL"), raising=False)
    monkeypatch.setenv("DOTENV_FILE", "/nonexistent/.env")
    reset_settings_cache()
    yield
    reset_settings_cache()
    set_meter(None)


@pytest.fixture()
def log_capture() -> Iterator[List[logging.LogRecord]]:
    """Collect records emitted anywhere under the ``meter`` logger."""
    records: List[logging.LogRecord] = []
    handler = logging.Handler()
    handler.emit = lambda record: records.append(record)  # type: ignore
    base = get_logger()
    base.addHandler(handler)
    try:
        yield records
    finally:
        base.removeHandler(handler)
