"""
Spark DataFrame integration.
"""

from .dataframe import ERROR_SCHEMA, transform_dataframe

__all__ = ["transform_dataframe", "ERROR_SCHEMA"]
