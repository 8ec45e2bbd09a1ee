"""Errors parts package public surface.

Prefer importing from `crux_meter.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .meter_error import MeterError, CatalogError
from .classification import classify_exception, extract_http_status

__all__ = ["ErrorCode", "MeterError", "CatalogError", "classify_exception", "extract_http_status"]
