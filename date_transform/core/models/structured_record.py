"""
StructuredRecord model representing a single typed record flowing through a transform.
"""

from typing import Any

from pydantic import BaseModel, Field
from pyspark.sql.types import (
    BooleanType,
    DoubleType,
    FloatType,
    IntegerType,
    LongType,
    ShortType,
    StringType,
    StructField,
    StructType,
)

from date_transform.core.schema.parsing import get_field


class RecordBuildError(ValueError):
    """Raised when a record cannot be built against its schema."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"Field '{field_name}': {message}")


class StructuredRecord(BaseModel):
    """
    A record of named, typed values bound to the schema it was built against
    (ephemeral, consumed once and discarded after emission).

    Attributes:
        record_schema: Spark schema declaring field order, types and nullability
        values: Field values keyed by name; undeclared fields never appear
    """

    record_schema: StructType
    values: dict[str, Any] = Field(default_factory=dict)

    class Config:
        arbitrary_types_allowed = True
        frozen = True

    @classmethod
    def builder(cls, schema: StructType) -> "RecordBuilder":
        return RecordBuilder(schema)

    def get(self, name: str) -> Any:
        """Return the value of a field, or None if it is unset or undeclared."""
        return self.values.get(name)

    def field(self, name: str) -> StructField | None:
        """Return the declared schema field, or None if the schema lacks it."""
        return get_field(self.record_schema, name)

    def to_dict(self) -> dict[str, Any]:
        """Values in schema order, unset fields as None."""
        return {field.name: self.values.get(field.name) for field in self.record_schema.fields}


class RecordBuilder:
    """
    Builds a StructuredRecord against an output schema.

    Fields left unset are None in the built record; build() rejects the record
    when a non-nullable field has no value.
    """

    def __init__(self, schema: StructType):
        self.schema = schema
        self._values: dict[str, Any] = {}

    def _require_field(self, name: str) -> StructField:
        field = get_field(self.schema, name)
        if field is None:
            raise RecordBuildError(name, "field is not present in the schema")
        return field

    def set(self, name: str, value: Any) -> "RecordBuilder":
        self._require_field(name)
        self._values[name] = value
        return self

    def convert_and_set(self, name: str, text: str | None) -> "RecordBuilder":
        """
        Set a field from its string form, converting to the declared type.

        Raises:
            RecordBuildError: If the field is undeclared or the text cannot be
                converted to the field's type
        """
        field = self._require_field(name)
        if text is None:
            self._values[name] = None
            return self

        data_type = field.dataType
        try:
            if isinstance(data_type, StringType):
                value: Any = text
            elif isinstance(data_type, (IntegerType, LongType, ShortType)):
                value = int(text)
            elif isinstance(data_type, (DoubleType, FloatType)):
                value = float(text)
            elif isinstance(data_type, BooleanType):
                if text.strip().lower() not in ("true", "false"):
                    raise ValueError(f"'{text}' is not a boolean")
                value = text.strip().lower() == "true"
            else:
                raise RecordBuildError(name, f"cannot convert a string to type {data_type.simpleString()}")
        except ValueError as e:
            if isinstance(e, RecordBuildError):
                raise
            raise RecordBuildError(name, f"cannot convert '{text}' to {data_type.simpleString()}: {e}") from e

        self._values[name] = value
        return self

    def build(self) -> StructuredRecord:
        """
        Build the record.

        Raises:
            RecordBuildError: If a non-nullable field is unset or None
        """
        for field in self.schema.fields:
            if not field.nullable and self._values.get(field.name) is None:
                raise RecordBuildError(field.name, "non-nullable field is not set")
        return StructuredRecord(record_schema=self.schema, values=dict(self._values))
