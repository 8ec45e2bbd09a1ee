"""
Media storage boundary.

Purpose
-------
Handlers that declare ``has_media`` persist generated images, audio and video
through a :class:`MediaStore`. The store knows how to write bytes and how to
download remote media; deciding *what* to store stays with the handlers.

Layout
------
``LocalMediaStore`` writes ``{base_path}/{request_id}/{index}.{extension}`` and
returns the written path as a string.

Failure modes
-------------
Downloads return ``None`` on transport errors or non-2xx statuses; nothing in
this module raises into the response processor except filesystem errors from
``store`` which the processor catches and logs.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

import httpx

from ..logging import get_logger, log_event

logger = get_logger("meter.media")

DOWNLOAD_TIMEOUT_SECONDS = 30.0


@runtime_checkable
class MediaStore(Protocol):
    """Persistence contract for media attachments."""

    def store(self, request_id: str, index: int, content: bytes, extension: str) -> str:
        """Persist ``content`` and return its storage location."""
        ...

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Optional[Tuple[bytes, Optional[str]]]:
        """Download ``url`` with optional ``headers``; return ``(body, content_type)`` or ``None``."""
        ...


class LocalMediaStore:
    """Filesystem media store with httpx downloads."""

    def __init__(
        self,
        base_path: Union[str, Path],
        client: Optional[httpx.Client] = None,
        timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self.base_path = Path(base_path)
        self._client = client
        self._timeout = timeout

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
        return self._client

    def store(self, request_id: str, index: int, content: bytes, extension: str) -> str:
        target = self.base_path / request_id / f"{index}.{extension}"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return str(target)

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Optional[Tuple[bytes, Optional[str]]]:
        try:
            response = self._http().get(url, headers=dict(headers) if headers else None)
        except httpx.HTTPError as exc:
            log_event(logger, "meter.media.store_failed", url=url, error=str(exc), level=logging.WARNING)
            return None
        if not response.is_success:
            log_event(logger, "meter.media.store_failed", url=url, status=response.status_code, level=logging.WARNING)
            return None
        return response.content, response.headers.get("content-type")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


__all__ = ["MediaStore", "LocalMediaStore"]
