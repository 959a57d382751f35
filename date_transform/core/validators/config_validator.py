"""
ConfigValidator - checks a date transform configuration before any record is processed.
"""

from pyspark.sql.types import StructType

from date_transform.config import DateTransformConfig
from date_transform.core.formats import DatePatternError, tokenize
from date_transform.core.schema import (
    SchemaParseError,
    get_field,
    is_supported_source_type,
    type_display_name,
)

from .failure_collector import FailureCollector

PATTERN_REFERENCE = (
    "Use a SimpleDateFormat pattern such as 'yyyy-MM-dd' or 'MM/dd/yy HH:mm:ss'; "
    "quote literal letters with single quotes."
)


class ConfigValidator:
    """
    Validates a DateTransformConfig against the output schema and,
    when known, the input schema.

    Every check reports into a FailureCollector, so in collect-all mode all
    problems are reported together. Checks that depend on a deferred property
    are skipped until the property is resolved.
    """

    def __init__(self, config: DateTransformConfig):
        self.config = config

    def validate(
        self,
        collector: FailureCollector,
        input_schema: StructType | None = None,
        require_input_schema: bool = False,
    ) -> None:
        """
        Run all configuration checks.

        Args:
            collector: Receives the failures
            input_schema: Schema of incoming records, if known
            require_input_schema: Treat a missing input schema as fatal

        Raises:
            ValidationException: If the input schema is required but missing,
                or on the first failure when the collector is fail-fast
        """
        config = self.config

        self._validate_output_schema(collector)

        self._validate_date_format(collector, config.target_format, config.PROPERTY_TARGET_FORMAT)
        self._validate_date_format(collector, config.source_format, config.PROPERTY_SOURCE_FORMAT)

        self._validate_field_counts(collector)

        if input_schema is None:
            if require_input_schema:
                collector.add_failure("Input schema cannot be null.")
                collector.get_or_throw_exception()
            return

        self._validate_source_fields(collector, input_schema)

    def _validate_output_schema(self, collector: FailureCollector) -> None:
        config = self.config
        if config.is_deferred(config.PROPERTY_OUTPUT_SCHEMA):
            return

        try:
            output_schema = config.get_output_schema()
        except SchemaParseError as e:
            collector.add_failure(
                "Output schema cannot be parsed.",
                "Provide the output schema as a Spark struct schema JSON document.",
                config_properties=(config.PROPERTY_OUTPUT_SCHEMA,),
                exc=e,
            )
            return

        if output_schema is None:
            collector.add_failure(
                "Output schema must be specified.",
                config_properties=(config.PROPERTY_OUTPUT_SCHEMA,),
            )
            return

        if config.is_deferred(config.PROPERTY_TARGET_FIELDS):
            return

        for target_field in config.get_target_fields():
            if get_field(output_schema, target_field) is None:
                collector.add_failure(
                    f"Target field '{target_field}' is not present in output schema.",
                    config_element=(config.PROPERTY_TARGET_FIELDS, target_field),
                    output_field=target_field,
                )

    def _validate_date_format(self, collector: FailureCollector, pattern: str | None, property_name: str) -> None:
        if self.config.is_deferred(property_name) or not pattern:
            return
        try:
            tokenize(pattern)
        except DatePatternError as e:
            collector.add_failure(
                f"Field '{property_name}' contains invalid date pattern '{pattern}'.",
                PATTERN_REFERENCE,
                config_properties=(property_name,),
                exc=e,
            )

    def _validate_field_counts(self, collector: FailureCollector) -> None:
        config = self.config
        source_deferred = config.is_deferred(config.PROPERTY_SOURCE_FIELDS)
        target_deferred = config.is_deferred(config.PROPERTY_TARGET_FIELDS)

        source_fields = config.get_source_fields()
        target_fields = config.get_target_fields()

        if not source_deferred and not source_fields:
            collector.add_failure(
                "Source fields must be specified.",
                config_properties=(config.PROPERTY_SOURCE_FIELDS,),
            )
        if not target_deferred and not target_fields:
            collector.add_failure(
                "Target fields must be specified.",
                config_properties=(config.PROPERTY_TARGET_FIELDS,),
            )

        if source_deferred or target_deferred or not source_fields or not target_fields:
            return
        if len(source_fields) != len(target_fields):
            collector.add_failure(
                "Target and source fields must contain the same number of fields.",
                f"Found {len(source_fields)} source fields and {len(target_fields)} target fields.",
                config_properties=(config.PROPERTY_SOURCE_FIELDS, config.PROPERTY_TARGET_FIELDS),
            )

    def _validate_source_fields(self, collector: FailureCollector, input_schema: StructType) -> None:
        config = self.config
        if config.is_deferred(config.PROPERTY_SOURCE_FIELDS):
            return

        for source_field in config.get_source_fields():
            field = get_field(input_schema, source_field)
            if field is None:
                collector.add_failure(
                    f"Source field '{source_field}' is not present in input schema.",
                    config_properties=(config.PROPERTY_SOURCE_FIELDS,),
                    input_field=source_field,
                )
            elif not is_supported_source_type(field.dataType):
                collector.add_failure(
                    f"Source field '{source_field}' is unexpected type '{type_display_name(field.dataType)}'.",
                    "Supported types are 'string' or 'long'.",
                    config_properties=(config.PROPERTY_SOURCE_FIELDS,),
                    input_field=source_field,
                )
