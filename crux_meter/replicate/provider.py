"""Replicate provider declaration."""

from __future__ import annotations

import re
from typing import List, Optional

from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.patterns import normalize_path
from ..base.handlers.provider import Provider
from .handlers import ImageHandler, TextHandler, VideoHandler

_MODEL_PATH = re.compile(r"^/v1/models/([^/]+)/([^/]+)/predictions$")


class ReplicateProvider(Provider):
    name = "replicate"
    display_name = "Replicate"
    hosts = ("api.replicate.com",)

    def build_handlers(self) -> List[ProviderHandler]:
        # one shared endpoint: shape checks run in reverse, video then text then image
        return [ImageHandler(), TextHandler(), VideoHandler()]

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str] = None) -> Optional[str]:
        match = _MODEL_PATH.match(normalize_path(endpoint))
        if match:
            return f"{match.group(1)}/{match.group(2)}"
        return super().extract_model_from_request(request_data, endpoint)


__all__ = ["ReplicateProvider"]
