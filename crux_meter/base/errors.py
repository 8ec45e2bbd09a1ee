"""Unified metering error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``crux_meter.base.errors_parts`` behind a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.meter_error import MeterError, CatalogError
from .errors_parts.classification import classify_exception, extract_http_status

__all__ = ["ErrorCode", "MeterError", "CatalogError", "classify_exception", "extract_http_status"]
