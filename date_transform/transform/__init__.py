"""
The date transform and its output channels.
"""

from .date_transform import (
    INVALID_ENTRY_ERROR_CODE,
    DateConversionError,
    DateTransform,
    DateTransformError,
    MappingOutcome,
    UnsupportedFieldTypeError,
)
from .emitter import Emitter, ListEmitter

__all__ = [
    "DateTransform",
    "DateTransformError",
    "DateConversionError",
    "UnsupportedFieldTypeError",
    "MappingOutcome",
    "INVALID_ENTRY_ERROR_CODE",
    "Emitter",
    "ListEmitter",
]
