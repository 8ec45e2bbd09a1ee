"""Small shared helpers for the metering base layer."""

from .coercion import (
    dig,
    first_present,
    coerce_int,
    coerce_float,
    int_or_zero,
    as_dict,
    as_list,
    non_empty_str,
)
from .payload import to_mapping

__all__ = [
    "dig",
    "first_present",
    "coerce_int",
    "coerce_float",
    "int_or_zero",
    "as_dict",
    "as_list",
    "non_empty_str",
    "to_mapping",
]
