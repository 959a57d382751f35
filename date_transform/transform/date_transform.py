"""
Date transform: converts date fields into formatted date strings.

Source fields hold either a string date (parsed with the source format) or an
epoch timestamp as a long (seconds or milliseconds). Each converted value is
rendered with the target format into its paired target field; every other
field of the output schema is copied from the input record.
"""

import os
import time
import traceback
from enum import Enum

from pyspark.sql.types import DataType, LongType, StructType

from date_transform.config import DateTransformConfig
from date_transform.core.formats import DateFormatter, resolve_zone
from date_transform.core.models import InvalidEntry, RecordBuilder, StructuredRecord
from date_transform.core.schema import is_supported_source_type, type_display_name
from date_transform.core.validators import ConfigValidator, FailureCollector
from date_transform.observability.logger import get_stage_logger
from date_transform.observability.metrics import MetricsCollector

from .emitter import Emitter


INVALID_ENTRY_ERROR_CODE = 31


class MappingOutcome(str, Enum):
    """Result of processing one source/target mapping of a record."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    ROUTED_TO_ERROR = "routed_to_error"


class DateTransformError(ValueError):
    """Raised when a record cannot be transformed at all."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(message)


class UnsupportedFieldTypeError(DateTransformError):
    """A source field in the record's own schema is neither string nor long."""

    def __init__(self, field_name: str, type_name: str):
        self.type_name = type_name
        super().__init__(
            field_name,
            f"Source field: {field_name} must be of type string or long. It is type: {type_name}",
        )


class DateConversionError(DateTransformError):
    """A non-blank source value could not be parsed or rendered."""

    def __init__(self, field_name: str, value: object, target_format: str, cause: Exception):
        self.value = value
        self.target_format = target_format
        super().__init__(
            field_name,
            f"Cannot parse value {value} of field '{field_name}' for format {target_format}. {cause}.",
        )


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _error_origin(exc: BaseException) -> str:
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return type(exc).__name__
    frame = frames[-1]
    return f"{os.path.basename(frame.filename)}:{frame.lineno} in {frame.name}"


class DateTransform:
    """
    Converts configured source fields of each record into formatted dates.

    Lifecycle:
    1. configure_pipeline() / prepare_run(): validate the configuration
    2. initialize(): compile formatters and the output schema once
    3. transform(): process records one at a time

    After initialize() the instance holds only read-only state.
    """

    def __init__(
        self,
        config: DateTransformConfig,
        stage_name: str = "DateTransform",
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the transform.

        Args:
            config: Transform settings
            stage_name: Name used in logs, metrics and validation failures
            metrics: Metrics collector (default: one labelled with stage_name)
        """
        self.config = config
        self.stage_name = stage_name
        self.metrics = metrics or MetricsCollector(stage_name)
        self.logger = get_stage_logger(__name__, stage_name)

        self.source_formatter: DateFormatter | None = None
        self.target_formatter: DateFormatter | None = None
        self.output_schema: StructType | None = None
        self.mappings: list[tuple[str, str]] = []
        self._target_fields: frozenset[str] = frozenset()
        self._nullable: dict[str, bool] = {}

    @property
    def initialized(self) -> bool:
        return self.output_schema is not None

    def configure_pipeline(self, input_schema: StructType | None = None) -> StructType | None:
        """
        Validate the configuration at pipeline definition time.

        Deferred properties and a missing input schema are tolerated.

        Returns:
            The output schema, or None if it is still deferred

        Raises:
            ValidationException: With every failure found
        """
        self._validate(input_schema, require_input_schema=False)
        if self.config.is_deferred(self.config.PROPERTY_OUTPUT_SCHEMA):
            return None
        return self.config.get_output_schema()

    def prepare_run(self, input_schema: StructType | None) -> None:
        """
        Validate the configuration right before processing starts.

        Raises:
            ValidationException: If any check fails or the input schema is missing
        """
        self._validate(input_schema, require_input_schema=True)

    def _validate(self, input_schema: StructType | None, require_input_schema: bool) -> None:
        collector = FailureCollector(self.stage_name)
        try:
            ConfigValidator(self.config).validate(collector, input_schema, require_input_schema)
        finally:
            self.metrics.record_validation_failures(len(collector.get_validation_failures()))
        collector.get_or_throw_exception()

    def initialize(self) -> None:
        """
        Compile formatters and parse the output schema.

        Raises:
            ValidationException: On the first configuration problem, including
                properties that are still deferred
        """
        config = self.config
        collector = FailureCollector(self.stage_name, fail_fast=True)
        for property_name in sorted(config.deferred):
            collector.add_failure(
                f"Property '{property_name}' is deferred and has not been resolved.",
                config_properties=(property_name,),
            )
        ConfigValidator(config).validate(collector)

        tz = resolve_zone(config.timezone)
        self.source_formatter = DateFormatter(config.get_source_format(), tz)
        self.target_formatter = DateFormatter(config.get_target_format(), tz)

        output_schema = config.get_output_schema()
        self._nullable = {field.name: field.nullable for field in output_schema.fields}
        self.mappings = list(zip(config.get_source_fields(), config.get_target_fields()))
        self._target_fields = frozenset(config.get_target_fields())
        self.output_schema = output_schema

        self.logger.info(
            f"Initialized {self.stage_name}: {len(self.mappings)} mappings, "
            f"source format '{self.source_formatter.pattern}', "
            f"target format '{self.target_formatter.pattern}', unit {config.time_unit.value}"
        )

    def transform(self, record: StructuredRecord, emitter: Emitter) -> None:
        """
        Transform one record.

        The transformed record goes to ``emitter.emit``. A record whose blank
        source value cannot be written to a non-nullable target goes to
        ``emitter.emit_error`` instead.

        Raises:
            UnsupportedFieldTypeError: If a source field is neither string nor long
            DateConversionError: If a non-blank source value cannot be converted
        """
        if not self.initialized:
            raise RuntimeError(f"{self.stage_name} must be initialized before transforming records")

        start = time.perf_counter()
        try:
            emitted = self._transform(record, emitter)
        except ValueError:
            self.metrics.record_outcome("failed")
            raise
        self.metrics.record_outcome("emitted" if emitted else "error", time.perf_counter() - start)

    def _transform(self, record: StructuredRecord, emitter: Emitter) -> bool:
        builder = StructuredRecord.builder(self.output_schema)

        for field in self.output_schema.fields:
            if field.name in self._target_fields:
                continue
            value = record.get(field.name)
            if value is not None:
                builder.set(field.name, value)

        for source_field, target_field in self.mappings:
            outcome = self._convert_field(record, builder, emitter, source_field, target_field)
            self.metrics.record_field_outcome(outcome.value)
            if outcome is MappingOutcome.ROUTED_TO_ERROR:
                return False

        emitter.emit(builder.build())
        return True

    def _convert_field(
        self,
        record: StructuredRecord,
        builder: RecordBuilder,
        emitter: Emitter,
        source_field: str,
        target_field: str,
    ) -> MappingOutcome:
        field = record.field(source_field)
        context = {"field": source_field, "target_field": target_field}
        if field is None:
            self.logger.debug("Source field is not declared by the record, skipping", extra=context)
            return MappingOutcome.SKIPPED

        if not is_supported_source_type(field.dataType):
            error = UnsupportedFieldTypeError(source_field, type_display_name(field.dataType))
            self.logger.error(str(error), extra=context)
            raise error

        value = record.get(source_field)
        try:
            builder.convert_and_set(target_field, self._render(field.dataType, value))
            return MappingOutcome.WRITTEN
        except (ValueError, TypeError, OverflowError) as e:
            if not _is_blank(value):
                target_format = self.target_formatter.pattern
                self.logger.error(f"Cannot convert value with format '{target_format}': {e}", extra=context)
                raise DateConversionError(source_field, value, target_format, e) from e

            if self._nullable[target_field]:
                builder.set(target_field, None)
                return MappingOutcome.WRITTEN

            emitter.emit_error(
                InvalidEntry(
                    error_code=INVALID_ENTRY_ERROR_CODE,
                    error_message=f"{_error_origin(e)} : {e}",
                    invalid_record=record,
                )
            )
            self.logger.warning(
                "Record routed to error channel: blank source value for a non-nullable target",
                extra=context,
            )
            return MappingOutcome.ROUTED_TO_ERROR

    def _render(self, data_type: DataType, value: object) -> str:
        if isinstance(data_type, LongType):
            millis = value * 1000 if self.config.is_in_seconds() else value
            return self.target_formatter.format_epoch_millis(millis)
        return self.target_formatter.format(self.source_formatter.parse(value))
