"""
Schema parsing and field lookup.

Schemas are Spark StructType instances. They are persisted as JSON, either the
full ``StructType.json()`` document or the shorter ``{"fields": [...]}`` form
where each field has ``name``, ``type`` and optional ``nullable``.
"""

import json
from typing import Any

from pyspark.sql.types import DataType, LongType, StringType, StructField, StructType


class SchemaParseError(ValueError):
    """Raised when a schema document cannot be parsed."""

    def __init__(self, schema_text: str, reason: str):
        self.schema_text = schema_text
        self.reason = reason
        super().__init__(f"Unable to parse schema: {reason}")


SUPPORTED_SOURCE_TYPES = (StringType, LongType)


def parse_schema_json(schema_text: str) -> StructType:
    """
    Parse a schema JSON document.

    Args:
        schema_text: JSON text describing a struct schema

    Returns:
        Parsed StructType

    Raises:
        SchemaParseError: If the text is not valid JSON or not a struct schema
    """
    try:
        schema_dict = json.loads(schema_text)
    except (TypeError, json.JSONDecodeError) as e:
        raise SchemaParseError(schema_text, str(e)) from e
    return dict_to_schema(schema_dict, schema_text)


def dict_to_schema(schema_dict: Any, schema_text: str | None = None) -> StructType:
    """
    Convert a schema dictionary to a StructType.

    Raises:
        SchemaParseError: If the dictionary does not describe a struct schema
    """
    source = schema_text if schema_text is not None else repr(schema_dict)
    if not isinstance(schema_dict, dict) or not isinstance(schema_dict.get("fields"), list):
        raise SchemaParseError(source, "schema must be an object with a 'fields' list")
    if schema_dict.get("type", "struct") != "struct":
        raise SchemaParseError(source, f"schema type must be 'struct', got {schema_dict.get('type')!r}")

    fields = [
        {"nullable": True, "metadata": {}, **field} if isinstance(field, dict) else field
        for field in schema_dict["fields"]
    ]
    try:
        schema = StructType.fromJson({"fields": fields})
    except (KeyError, TypeError, ValueError, AttributeError, AssertionError) as e:
        raise SchemaParseError(source, f"invalid field definition: {e}") from e

    names = schema.fieldNames()
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise SchemaParseError(source, f"duplicate field names: {', '.join(duplicates)}")
    return schema


def schema_to_dict(schema: StructType) -> dict[str, Any]:
    """
    Convert a StructType to its JSON dictionary form.
    """
    return schema.jsonValue()


def get_field(schema: StructType, name: str) -> StructField | None:
    """Return the named field, or None when the schema does not declare it."""
    for field in schema.fields:
        if field.name == name:
            return field
    return None


def is_supported_source_type(data_type: DataType) -> bool:
    # Exact type match; timestamp, date and integer fields are not sources
    return type(data_type) in SUPPORTED_SOURCE_TYPES


def type_display_name(data_type: DataType) -> str:
    return data_type.simpleString()
