"""fal.ai image handler.

Endpoints are the model identifiers themselves, two to four path segments
(``/fal-ai/fast-sdxl``, ``/fal-ai/flux/dev``,
``/fal-ai/recraft/v3/text-to-image``). Responses never echo the model, so it
is read back from the path. Synchronous calls on ``fal.run`` return
``images`` at the top level; queue results wrap them in ``payload``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..base.handlers.capabilities import HandlerCapabilities
from ..base.handlers.handler import Body, ProviderHandler
from ..base.handlers.patterns import normalize_path
from ..base.media.helpers import store_url
from ..base.models_parts.image_metrics import ImageMetrics
from ..base.models_parts.metrics import Metrics
from ..base.models_parts.model_type import ModelType
from ..base.utils import as_list, dig, non_empty_str

if TYPE_CHECKING:
    from ..base.media.store import MediaStore

QUEUED_STATUSES = frozenset({"IN_QUEUE", "IN_PROGRESS"})


def model_from_endpoint(endpoint: Optional[str]) -> Optional[str]:
    """``/fal-ai/flux/dev`` -> ``fal-ai/flux/dev``; queue request paths drop ``/requests/{id}``."""
    path = normalize_path(endpoint)
    path = path.split("/requests/", 1)[0]
    return non_empty_str(path.strip("/"))


def resolve_images(body: Body) -> List[Dict[str, Any]]:
    images = body.get("images")
    if images is None:
        images = dig(body, "payload", "images")
    return [image for image in as_list(images) if isinstance(image, dict)]


class ImageHandler(ProviderHandler):
    endpoints = ("/{owner}/{model}", "/{owner}/{model}/{variant}", "/{owner}/{model}/{version}/{variant}")
    model_type = ModelType.IMAGE
    capabilities = HandlerCapabilities(skips_response=True, has_media=True, extracts_model_from_request=True)

    def should_skip_response(self, body: Body) -> bool:
        return body.get("status") in QUEUED_STATUSES and not resolve_images(body)

    def extract_metrics(self, request_data: Body, body: Body) -> Metrics:
        return Metrics(image=ImageMetrics(count=len(resolve_images(body))))

    def extract_model(self, body: Body) -> Optional[str]:
        return None

    def extract_model_from_request(self, request_data: Body, endpoint: Optional[str]) -> Optional[str]:
        return model_from_endpoint(endpoint)

    def extract_response_text(self, body: Body) -> Optional[str]:
        urls = [url for url in (non_empty_str(image.get("url")) for image in resolve_images(body)) if url]
        return "\n".join(urls) if urls else None

    def extract_finish_reason(self, body: Body) -> Optional[str]:
        return non_empty_str(body.get("status"))

    def store_media(self, request_id: str, body: Body, raw: Optional[bytes], store: "MediaStore") -> List[str]:
        stored = []
        for index, image in enumerate(resolve_images(body)):
            path = store_url(store, request_id, index, image.get("url"))
            if path:
                stored.append(path)
        return stored


__all__ = ["ImageHandler", "model_from_endpoint", "resolve_images"]
