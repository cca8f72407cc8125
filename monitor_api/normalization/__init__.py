"""Normalización de payloads heterogéneos a lecturas canónicas."""

from .normalizer import (
    NormalizedBatch,
    extract_row,
    normalize_direct,
    normalize_gateway,
    parse_temperature,
    parse_timestamp,
)

__all__ = [
    "NormalizedBatch",
    "extract_row",
    "normalize_direct",
    "normalize_gateway",
    "parse_temperature",
    "parse_timestamp",
]
