"""
ValidationFailure model representing one configuration problem found before processing.
"""

import traceback

from pydantic import BaseModel, Field

# Cause attribute keys
STAGE_CONFIG = "stageConfig"
CONFIG_ELEMENT = "configElement"
INPUT_SCHEMA_FIELD = "inputField"
OUTPUT_SCHEMA_FIELD = "outputField"
STACKTRACE = "stacktrace"


class ValidationFailure(BaseModel):
    """
    A configuration validation failure with its causes.

    Each cause is a small attribute map pointing at what is wrong: a config
    property (``stageConfig``), an element inside a list-valued property
    (``configElement``), an input or output schema field, or a stack trace.

    Attributes:
        message: What is wrong
        corrective_action: How to fix it, if known
        causes: Attribute maps locating the problem
    """

    message: str = Field(..., min_length=1)
    corrective_action: str | None = None
    causes: list[dict[str, str]] = Field(default_factory=list)

    def with_config_property(self, property_name: str) -> "ValidationFailure":
        self.causes.append({STAGE_CONFIG: property_name})
        return self

    def with_config_element(self, property_name: str, element: str) -> "ValidationFailure":
        self.causes.append({STAGE_CONFIG: property_name, CONFIG_ELEMENT: element})
        return self

    def with_input_schema_field(self, field_name: str) -> "ValidationFailure":
        self.causes.append({INPUT_SCHEMA_FIELD: field_name})
        return self

    def with_output_schema_field(self, field_name: str) -> "ValidationFailure":
        self.causes.append({OUTPUT_SCHEMA_FIELD: field_name})
        return self

    def with_stacktrace(self, exc: BaseException) -> "ValidationFailure":
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.causes.append({STACKTRACE: trace})
        return self

    def causes_with(self, attribute: str) -> list[dict[str, str]]:
        return [cause for cause in self.causes if attribute in cause]

    @property
    def config_properties(self) -> list[str]:
        return [cause[STAGE_CONFIG] for cause in self.causes_with(STAGE_CONFIG)]

    def __str__(self) -> str:
        if self.corrective_action:
            return f"{self.message} {self.corrective_action}"
        return self.message
