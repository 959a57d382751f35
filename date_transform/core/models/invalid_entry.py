"""
InvalidEntry model representing a record routed to the error channel.
"""

from pydantic import BaseModel, Field

from .structured_record import StructuredRecord


class InvalidEntry(BaseModel):
    """
    An unprocessable input record with diagnostic context.

    Attributes:
        error_code: Numeric error classification
        error_message: Diagnostic message (origin location and cause)
        invalid_record: The original, unmodified input record
    """

    error_code: int
    error_message: str = Field(..., min_length=1)
    invalid_record: StructuredRecord

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "error_code": 31,
                "error_message": "date_pattern.py:329 in parse : Unparseable date: \"None\" for pattern 'MM/dd/yy'",
                "invalid_record": {"values": {"a": None}},
            }
        }
