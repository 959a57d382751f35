"""
date-transform: converts string and epoch date fields of structured records
into formatted date strings.
"""

from date_transform.config import DateTransformConfig, TimeUnit
from date_transform.core.models import InvalidEntry, StructuredRecord
from date_transform.transform import DateTransform, ListEmitter

__version__ = "0.1.0"

__all__ = [
    "DateTransform",
    "DateTransformConfig",
    "TimeUnit",
    "StructuredRecord",
    "InvalidEntry",
    "ListEmitter",
]
