"""
Pytest configuration and fixtures for date-transform tests

This module provides shared fixtures for unit and integration tests.
"""
import shutil
from typing import Generator

import pytest
from pyspark.sql import SparkSession
from pyspark.sql.types import LongType, StringType, StructField, StructType

from date_transform.config import DateTransformConfig


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require a local Spark runtime"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Skips when no Java runtime is available.

    Yields:
        SparkSession configured for local testing
    """
    if shutil.which("java") is None:
        pytest.skip("Java runtime not available for Spark")

    spark = (
        SparkSession.builder
        .appName("date-transform-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    # Cleanup
    spark.stop()


# =======================
# SCHEMA AND CONFIG FIXTURES
# =======================

@pytest.fixture
def input_schema() -> StructType:
    """Input schema with a string date, a long epoch and a passthrough field"""
    return StructType([
        StructField("id", StringType(), True),
        StructField("a", StringType(), True),
        StructField("ts", LongType(), True),
    ])


@pytest.fixture
def output_schema() -> StructType:
    """Output schema with nullable date targets"""
    return StructType([
        StructField("id", StringType(), True),
        StructField("b", StringType(), True),
        StructField("ts_date", StringType(), True),
    ])


@pytest.fixture
def make_config():
    """
    Factory for DateTransformConfig instances

    The output schema may be given as a StructType.
    """
    def _make(output_schema=None, **overrides) -> DateTransformConfig:
        settings = {
            "source_fields": "a",
            "source_format": "MM/dd/yy",
            "target_fields": "b",
            "target_format": "yyyy-MM-dd",
        }
        settings.update(overrides)
        if isinstance(output_schema, StructType):
            settings["output_schema"] = output_schema.json()
        elif output_schema is not None:
            settings["output_schema"] = output_schema
        return DateTransformConfig(**settings)

    return _make

