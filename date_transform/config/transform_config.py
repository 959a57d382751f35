"""
DateTransformConfig model holding the immutable settings of a date transform.
"""

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pyspark.sql.types import StructType

from date_transform.core.formats import resolve_zone
from date_transform.core.schema import parse_schema_json

DEFAULT_FORMAT = "yyyy-MM-dd'T'HH:mm:ss.SSSZ"


class TimeUnit(str, Enum):
    """Unit of numeric (long) source values."""

    SECONDS = "Seconds"
    MILLISECONDS = "Milliseconds"

    @classmethod
    def from_setting(cls, value: str | None) -> "TimeUnit":
        # Only the exact string "Seconds" selects seconds
        return cls.SECONDS if value == cls.SECONDS.value else cls.MILLISECONDS


def split_fields(value: str | None) -> list[str]:
    if value is None or not value.strip():
        return []
    return [field.strip() for field in value.split(",")]


class DateTransformConfig(BaseModel):
    """
    Settings of a date transform.

    Attributes:
        source_fields: Comma-separated input fields holding dates (string or long)
        source_format: Pattern of string source values; unused for long sources
        target_fields: Comma-separated output fields, paired positionally with sources
        target_format: Pattern used to render every converted value
        seconds_or_milliseconds: "Seconds" if long sources are in seconds, else milliseconds
        output_schema: Output schema as JSON
        timezone: Zone used to render instants and to read zone-less strings
        deferred: Property names whose values are late-bound and not yet known
    """

    PROPERTY_SOURCE_FIELDS: ClassVar[str] = "source_fields"
    PROPERTY_SOURCE_FORMAT: ClassVar[str] = "source_format"
    PROPERTY_TARGET_FIELDS: ClassVar[str] = "target_fields"
    PROPERTY_TARGET_FORMAT: ClassVar[str] = "target_format"
    PROPERTY_SECONDS_OR_MILLISECONDS: ClassVar[str] = "seconds_or_milliseconds"
    PROPERTY_OUTPUT_SCHEMA: ClassVar[str] = "output_schema"

    source_fields: str | None = None
    source_format: str | None = None
    target_fields: str | None = None
    target_format: str | None = None
    seconds_or_milliseconds: str | None = TimeUnit.MILLISECONDS.value
    output_schema: str | None = None
    timezone: str = "UTC"
    deferred: frozenset[str] = Field(default_factory=frozenset)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "source_fields": "created_at, updated_ts",
                "source_format": "MM/dd/yy",
                "target_fields": "created_date, updated_date",
                "target_format": "yyyy-MM-dd",
                "seconds_or_milliseconds": "Seconds",
                "output_schema": '{"type": "struct", "fields": ['
                                 '{"name": "created_date", "type": "string", "nullable": true, "metadata": {}}, '
                                 '{"name": "updated_date", "type": "string", "nullable": true, "metadata": {}}]}',
                "timezone": "UTC",
            }
        }

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        """Validate that the time zone can be resolved."""
        resolve_zone(v)
        return v

    @field_validator("deferred")
    @classmethod
    def check_deferred_properties(cls, v):
        """Validate that only known properties are marked as deferred."""
        known = {
            cls.PROPERTY_SOURCE_FIELDS,
            cls.PROPERTY_SOURCE_FORMAT,
            cls.PROPERTY_TARGET_FIELDS,
            cls.PROPERTY_TARGET_FORMAT,
            cls.PROPERTY_SECONDS_OR_MILLISECONDS,
            cls.PROPERTY_OUTPUT_SCHEMA,
        }
        unknown = sorted(set(v) - known)
        if unknown:
            raise ValueError(f"Unknown deferred properties: {', '.join(unknown)}")
        return frozenset(v)

    def is_deferred(self, property_name: str) -> bool:
        return property_name in self.deferred

    def resolve(self, **values) -> "DateTransformConfig":
        """
        Return a copy with late-bound property values filled in.

        Resolved properties are no longer deferred.
        """
        data = self.model_dump()
        data.update(values)
        data["deferred"] = self.deferred.difference(values)
        return DateTransformConfig(**data)

    def get_source_fields(self) -> list[str]:
        return split_fields(self.source_fields)

    def get_target_fields(self) -> list[str]:
        return split_fields(self.target_fields)

    @property
    def time_unit(self) -> TimeUnit:
        return TimeUnit.from_setting(self.seconds_or_milliseconds)

    def is_in_seconds(self) -> bool:
        return self.time_unit is TimeUnit.SECONDS

    def get_source_format(self) -> str:
        return self.source_format or DEFAULT_FORMAT

    def get_target_format(self) -> str:
        return self.target_format or DEFAULT_FORMAT

    def get_output_schema(self) -> StructType | None:
        """
        Parse the output schema.

        Returns:
            The schema, or None when no schema is configured

        Raises:
            SchemaParseError: If the schema text cannot be parsed
        """
        if not self.output_schema or not self.output_schema.strip():
            return None
        return parse_schema_json(self.output_schema)
