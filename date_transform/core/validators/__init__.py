"""
Configuration validation.

Provides the failure collector and the checks run against a date transform
configuration before records are processed.
"""

from .config_validator import ConfigValidator
from .failure_collector import FailureCollector, ValidationException

__all__ = [
    "ConfigValidator",
    "FailureCollector",
    "ValidationException",
]
