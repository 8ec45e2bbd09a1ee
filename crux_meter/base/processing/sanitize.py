"""
Response sanitization before a body leaves the pipeline.

Large inline payloads (base64 images and audio, embedding vectors) are
replaced with the fixed ``[stripped]`` marker so stored records stay small.
Media worth keeping is persisted separately through the media store.

All functions return new containers; the caller's body is never mutated.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping

from ..constants import INLINE_RESULT_STRIP_THRESHOLD, STRIPPED
from ..utils import as_list, dig

BINARY_MARKER = "[binary data]"


def strip_binary_data(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Replace inline base64 media with :data:`STRIPPED`.

    Covered shapes: ``data[].b64_json``; ``output[]`` image generation results
    longer than the inline threshold; Gemini ``inlineData.data`` parts; Imagen
    ``generatedImages[].image.imageBytes`` and ``predictions[].bytesBase64Encoded``.
    """
    out: Dict[str, Any] = copy.deepcopy(dict(body))

    for item in as_list(out.get("data")):
        if isinstance(item, dict) and "b64_json" in item:
            item["b64_json"] = STRIPPED

    for item in as_list(out.get("output")):
        if (
            isinstance(item, dict)
            and item.get("type") == "image_generation_call"
            and isinstance(item.get("result"), str)
            and len(item["result"]) > INLINE_RESULT_STRIP_THRESHOLD
        ):
            item["result"] = STRIPPED

    for candidate in as_list(out.get("candidates")):
        for part in as_list(dig(candidate, "content", "parts")):
            inline = part.get("inlineData") if isinstance(part, dict) else None
            if isinstance(inline, dict) and "data" in inline:
                inline["data"] = STRIPPED

    for image in as_list(out.get("generatedImages")):
        inner = image.get("image") if isinstance(image, dict) else None
        if isinstance(inner, dict) and "imageBytes" in inner:
            inner["imageBytes"] = STRIPPED

    for prediction in as_list(out.get("predictions")):
        if isinstance(prediction, dict) and "bytesBase64Encoded" in prediction:
            prediction["bytesBase64Encoded"] = STRIPPED

    return out


def strip_embeddings(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Replace embedding vectors with :data:`STRIPPED`, keeping usage and metadata."""
    out: Dict[str, Any] = copy.deepcopy(dict(body))

    for item in as_list(out.get("data")):
        if isinstance(item, dict) and "embedding" in item:
            item["embedding"] = STRIPPED

    single = out.get("embedding")
    if isinstance(single, dict) and "values" in single:
        single["values"] = STRIPPED

    embeddings = out.get("embeddings")
    if isinstance(embeddings, list):
        for i, item in enumerate(embeddings):
            if isinstance(item, dict) and "values" in item:
                item["values"] = STRIPPED
            elif isinstance(item, list):
                embeddings[i] = STRIPPED
    elif isinstance(embeddings, dict):
        # cohere v2: {"float": [[...]], "int8": [[...]]}
        for key in list(embeddings):
            embeddings[key] = STRIPPED

    return out


def sanitize_for_json(data: Any) -> Any:
    """Recursively replace byte strings that are not UTF-8 text with a marker."""
    if isinstance(data, Mapping):
        return {k: sanitize_for_json(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_for_json(v) for v in data]
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError:
            return BINARY_MARKER
    return data


__all__ = ["BINARY_MARKER", "strip_binary_data", "strip_embeddings", "sanitize_for_json"]
