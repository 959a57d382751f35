"""
Core data models for the date transform.

All models use Pydantic for runtime validation and type safety.
"""

from .invalid_entry import InvalidEntry
from .structured_record import RecordBuildError, RecordBuilder, StructuredRecord
from .validation_failure import ValidationFailure

__all__ = [
    "StructuredRecord",
    "RecordBuilder",
    "RecordBuildError",
    "InvalidEntry",
    "ValidationFailure",
]
