"""
Date pattern compilation, parsing and rendering.
"""

from .date_pattern import (
    DateFormatter,
    DateParseError,
    DatePatternError,
    is_valid_pattern,
    resolve_zone,
    tokenize,
)

__all__ = [
    "DateFormatter",
    "DateParseError",
    "DatePatternError",
    "is_valid_pattern",
    "resolve_zone",
    "tokenize",
]
