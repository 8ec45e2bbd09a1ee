"""Conversion of arbitrary SDK objects and raw bodies into plain mappings."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping


def to_mapping(obj: Any) -> Dict[str, Any]:
    """Best-effort conversion of a response, chunk or SDK object to a dict.

    Supports mappings, pydantic models (``model_dump``), objects exposing
    ``to_dict``/``dict``, JSON text and JSON bytes. Anything else, including
    malformed JSON, becomes an empty dict.
    """
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (bytes, bytearray)):
        try:
            obj = bytes(obj).decode("utf-8")
        except UnicodeDecodeError:
            return {}
    if isinstance(obj, str):
        try:
            decoded = json.loads(obj)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    for attr in ("model_dump", "to_dict", "dict"):
        method = getattr(obj, attr, None)
        if callable(method):
            try:
                data = method()
            except Exception:  # SDK serializers vary; treat failures as empty
                return {}
            return dict(data) if isinstance(data, Mapping) else {}
    return {}


__all__ = ["to_mapping"]
