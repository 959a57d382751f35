"""
Collection of configuration validation failures.

Failures are either accumulated and raised together, or (legacy fail-fast
mode) raised as soon as the first one is added.
"""

from date_transform.core.models import ValidationFailure
from date_transform.observability.logger import get_stage_logger


class ValidationException(ValueError):
    """Raised when configuration validation fails."""

    def __init__(self, failures: list[ValidationFailure]):
        self.failures = list(failures)
        if len(self.failures) == 1:
            message = str(self.failures[0])
        else:
            details = "; ".join(str(failure) for failure in self.failures)
            message = f"Errors were encountered during validation. {details}"
        super().__init__(message)


class FailureCollector:
    """
    Accumulates ValidationFailure instances for one stage.
    """

    def __init__(self, stage_name: str = "DateTransform", fail_fast: bool = False):
        """
        Initialize failure collector.

        Args:
            stage_name: Name of the stage being validated (for logs)
            fail_fast: Raise ValidationException on the first failure
        """
        self.stage_name = stage_name
        self.fail_fast = fail_fast
        self.logger = get_stage_logger(__name__, stage_name)
        self._failures: list[ValidationFailure] = []

    def add_failure(
        self,
        message: str,
        corrective_action: str | None = None,
        *,
        config_properties: tuple[str, ...] = (),
        config_element: tuple[str, str] | None = None,
        input_field: str | None = None,
        output_field: str | None = None,
        exc: BaseException | None = None,
    ) -> ValidationFailure:
        """
        Record a failure.

        Args:
            message: What is wrong
            corrective_action: How to fix it
            config_properties: Offending config properties
            config_element: (property, element) for an entry of a list property
            input_field: Offending input schema field
            output_field: Offending output schema field
            exc: Exception whose stack trace is attached

        Returns:
            The recorded failure; further causes can be chained onto it

        Raises:
            ValidationException: In fail-fast mode
        """
        failure = ValidationFailure(message=message, corrective_action=corrective_action)
        for property_name in config_properties:
            failure.with_config_property(property_name)
        if config_element is not None:
            failure.with_config_element(*config_element)
        if input_field is not None:
            failure.with_input_schema_field(input_field)
        if output_field is not None:
            failure.with_output_schema_field(output_field)
        if exc is not None:
            failure.with_stacktrace(exc)

        self._failures.append(failure)
        self.logger.debug(f"Validation failure: {failure}")

        if self.fail_fast:
            raise ValidationException([failure])
        return failure

    def get_validation_failures(self) -> list[ValidationFailure]:
        return list(self._failures)

    def has_failures(self) -> bool:
        return bool(self._failures)

    def get_or_throw_exception(self) -> None:
        """
        Raise the collected failures, if any.

        Raises:
            ValidationException: If at least one failure was collected
        """
        if self._failures:
            raise ValidationException(self._failures)
