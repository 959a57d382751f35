"""
Unit tests for Pydantic data models and schema parsing.

Tests records, error entries and validation failures for construction,
type conversion and constraint enforcement.
"""

import pytest
from pydantic import ValidationError
from pyspark.sql.types import (
    BooleanType,
    DateType,
    IntegerType,
    LongType,
    StringType,
    StructField,
    StructType,
    TimestampType,
)

from date_transform.core.models import (
    InvalidEntry,
    RecordBuildError,
    StructuredRecord,
    ValidationFailure,
)
from date_transform.core.models.validation_failure import (
    CONFIG_ELEMENT,
    INPUT_SCHEMA_FIELD,
    OUTPUT_SCHEMA_FIELD,
    STACKTRACE,
    STAGE_CONFIG,
)
from date_transform.core.schema import (
    SchemaParseError,
    get_field,
    is_supported_source_type,
    parse_schema_json,
    schema_to_dict,
    type_display_name,
)


@pytest.fixture
def schema() -> StructType:
    return StructType([
        StructField("name", StringType(), True),
        StructField("count", LongType(), True),
        StructField("active", BooleanType(), True),
        StructField("required", StringType(), False),
    ])


class TestStructuredRecord:
    """Tests for StructuredRecord model"""

    def test_get_and_field(self, schema):
        """Test value and schema field lookup"""
        record = StructuredRecord(record_schema=schema, values={"name": "x", "required": "y"})
        assert record.get("name") == "x"
        assert record.get("count") is None
        assert record.get("undeclared") is None
        assert record.field("count").dataType == LongType()
        assert record.field("undeclared") is None

    def test_to_dict_in_schema_order(self, schema):
        """Test that to_dict lists every declared field in order"""
        record = StructuredRecord(record_schema=schema, values={"required": "y", "name": "x"})
        assert list(record.to_dict().items()) == [
            ("name", "x"), ("count", None), ("active", None), ("required", "y"),
        ]

    def test_record_is_frozen(self, schema):
        """Test that records cannot be modified after creation"""
        record = StructuredRecord(record_schema=schema, values={"required": "y"})
        with pytest.raises(ValidationError):
            record.values = {}

    def test_records_compare_by_content(self, schema):
        """Test equality of records with the same schema and values"""
        first = StructuredRecord(record_schema=schema, values={"required": "y"})
        second = StructuredRecord(record_schema=schema, values={"required": "y"})
        assert first == second


class TestRecordBuilder:
    """Tests for RecordBuilder"""

    def test_build_record(self, schema):
        """Test building a record with set and convert_and_set"""
        record = (
            StructuredRecord.builder(schema)
            .set("name", "x")
            .convert_and_set("count", "42")
            .convert_and_set("active", "True")
            .set("required", "y")
            .build()
        )
        assert record.get("count") == 42
        assert record.get("active") is True
        assert record.record_schema == schema

    def test_unknown_field_raises_error(self, schema):
        """Test that fields outside the schema are rejected"""
        with pytest.raises(RecordBuildError) as exc_info:
            StructuredRecord.builder(schema).set("other", 1)
        assert exc_info.value.field_name == "other"

    def test_convert_invalid_number_raises_error(self, schema):
        """Test that unconvertible text is rejected"""
        with pytest.raises(RecordBuildError) as exc_info:
            StructuredRecord.builder(schema).convert_and_set("count", "2024-07-04")
        assert "count" in str(exc_info.value)

    def test_convert_invalid_boolean_raises_error(self, schema):
        """Test that only true/false convert to booleans"""
        with pytest.raises(RecordBuildError):
            StructuredRecord.builder(schema).convert_and_set("active", "yes")

    def test_convert_to_unsupported_type_raises_error(self):
        """Test that text cannot be converted to a date type"""
        schema = StructType([StructField("d", DateType(), True)])
        with pytest.raises(RecordBuildError) as exc_info:
            StructuredRecord.builder(schema).convert_and_set("d", "2024-07-04")
        assert "date" in str(exc_info.value)

    def test_convert_none_sets_null(self, schema):
        """Test that None converts to a null value"""
        record = StructuredRecord.builder(schema).convert_and_set("name", None).set("required", "y").build()
        assert record.get("name") is None

    def test_missing_non_nullable_field_raises_error(self, schema):
        """Test that build() enforces non-nullable fields"""
        with pytest.raises(RecordBuildError) as exc_info:
            StructuredRecord.builder(schema).set("name", "x").build()
        assert exc_info.value.field_name == "required"


class TestInvalidEntry:
    """Tests for InvalidEntry model"""

    def test_valid_entry(self, schema):
        """Test creating an error entry"""
        record = StructuredRecord(record_schema=schema, values={"required": "y"})
        entry = InvalidEntry(error_code=31, error_message="here : failed", invalid_record=record)
        assert entry.error_code == 31
        assert entry.invalid_record == record

    def test_empty_message_raises_error(self, schema):
        """Test that the error message must not be empty"""
        record = StructuredRecord(record_schema=schema, values={})
        with pytest.raises(ValidationError) as exc_info:
            InvalidEntry(error_code=31, error_message="", invalid_record=record)
        assert "error_message" in str(exc_info.value)


class TestValidationFailure:
    """Tests for ValidationFailure model"""

    def test_causes(self):
        """Test chaining causes onto a failure"""
        failure = (
            ValidationFailure(message="Bad target.", corrective_action="Fix it.")
            .with_config_property("target_fields")
            .with_config_element("target_fields", "b")
            .with_input_schema_field("a")
            .with_output_schema_field("b")
        )
        assert failure.causes == [
            {STAGE_CONFIG: "target_fields"},
            {STAGE_CONFIG: "target_fields", CONFIG_ELEMENT: "b"},
            {INPUT_SCHEMA_FIELD: "a"},
            {OUTPUT_SCHEMA_FIELD: "b"},
        ]
        assert failure.config_properties == ["target_fields", "target_fields"]
        assert str(failure) == "Bad target. Fix it."

    def test_stacktrace(self):
        """Test attaching an exception's stack trace"""
        try:
            raise ValueError("boom")
        except ValueError as e:
            failure = ValidationFailure(message="Broken.").with_stacktrace(e)
        [cause] = failure.causes_with(STACKTRACE)
        assert "ValueError: boom" in cause[STACKTRACE]
        assert str(failure) == "Broken."

    def test_empty_message_raises_error(self):
        """Test that a failure needs a message"""
        with pytest.raises(ValidationError):
            ValidationFailure(message="")


class TestSchemaParsing:
    """Tests for schema JSON parsing"""

    def test_full_schema_document(self):
        """Test parsing StructType.json() output"""
        schema = StructType([
            StructField("a", StringType(), True),
            StructField("b", LongType(), False),
        ])
        assert parse_schema_json(schema.json()) == schema

    def test_short_form_defaults_to_nullable(self):
        """Test the short field form without nullable or metadata"""
        schema = parse_schema_json('{"fields": [{"name": "a", "type": "string"}]}')
        assert schema.fields[0].nullable is True
        assert schema.fields[0].dataType == StringType()

    def test_schema_to_dict(self):
        """Test converting a schema back to its dictionary form"""
        schema = StructType([StructField("a", StringType(), True)])
        assert schema_to_dict(schema)["fields"][0]["name"] == "a"

    @pytest.mark.parametrize("text", [
        "not json",
        "[]",
        '{"type": "array", "fields": []}',
        '{"fields": [{"type": "string"}]}',
        '{"fields": [{"name": "a", "type": "no_such_type"}]}',
    ])
    def test_invalid_schema_raises_error(self, text):
        """Test that malformed schema documents are rejected"""
        with pytest.raises(SchemaParseError) as exc_info:
            parse_schema_json(text)
        assert exc_info.value.schema_text == text

    def test_duplicate_fields_raise_error(self):
        """Test that duplicate field names are rejected"""
        text = '{"fields": [{"name": "a", "type": "string"}, {"name": "a", "type": "long"}]}'
        with pytest.raises(SchemaParseError) as exc_info:
            parse_schema_json(text)
        assert "duplicate" in exc_info.value.reason

    def test_get_field(self):
        """Test field lookup by name"""
        schema = StructType([StructField("a", StringType(), True)])
        assert get_field(schema, "a").name == "a"
        assert get_field(schema, "b") is None

    def test_supported_source_types(self):
        """Test that only string and long are supported source types"""
        assert is_supported_source_type(StringType())
        assert is_supported_source_type(LongType())
        assert not is_supported_source_type(IntegerType())
        assert not is_supported_source_type(TimestampType())
        assert not is_supported_source_type(BooleanType())

    def test_type_display_name(self):
        """Test type names used in messages"""
        assert type_display_name(BooleanType()) == "boolean"
        assert type_display_name(LongType()) == "bigint"
