"""
Schema parsing and field type helpers.
"""

from .parsing import (
    SchemaParseError,
    dict_to_schema,
    get_field,
    is_supported_source_type,
    parse_schema_json,
    schema_to_dict,
    type_display_name,
)

__all__ = [
    "SchemaParseError",
    "dict_to_schema",
    "get_field",
    "is_supported_source_type",
    "parse_schema_json",
    "schema_to_dict",
    "type_display_name",
]
