"""
Spark integration: applies the date transform to a DataFrame.

Each partition builds and initializes its own DateTransform, so executors share
only the (picklable) configuration.
"""

import json
from typing import Iterator

from pyspark.sql import DataFrame, Row
from pyspark.sql.types import IntegerType, StringType, StructField, StructType

from date_transform.config import DateTransformConfig
from date_transform.core.models import StructuredRecord
from date_transform.observability.logger import get_logger
from date_transform.transform import DateTransform, ListEmitter

logger = get_logger(__name__)

ERROR_SCHEMA = StructType([
    StructField("error_code", IntegerType(), False),
    StructField("error_message", StringType(), False),
    StructField("invalid_record", StringType(), True),
])

_OUTPUT = 0
_ERROR = 1


def _transform_partition(
    rows: Iterator[Row],
    config: DateTransformConfig,
    input_schema: StructType,
    stage_name: str,
) -> Iterator[tuple[int, tuple]]:
    transform = DateTransform(config, stage_name)
    transform.initialize()
    emitter = ListEmitter()

    for row in rows:
        record = StructuredRecord(record_schema=input_schema, values=row.asDict(recursive=False))
        transform.transform(record, emitter)

        for output in emitter.emitted:
            yield _OUTPUT, tuple(output.to_dict().values())
        for entry in emitter.errors:
            yield _ERROR, (
                entry.error_code,
                entry.error_message,
                json.dumps(entry.invalid_record.to_dict(), default=str),
            )
        emitter.clear()


def transform_dataframe(
    df: DataFrame,
    config: DateTransformConfig,
    stage_name: str = "DateTransform",
) -> tuple[DataFrame, DataFrame]:
    """
    Apply the date transform to every row of a DataFrame.

    The transform runs eagerly: both result DataFrames are materialized with
    ``localCheckpoint`` from one pass over ``df``, and the intermediate cached
    rows are unpersisted before returning. Fatal conversion errors therefore
    surface from this call.

    Args:
        df: Input DataFrame; its schema is the input schema
        config: Transform settings (no deferred properties)
        stage_name: Stage name for logs and metrics

    Returns:
        Tuple of (output_df, error_df); error_df follows ERROR_SCHEMA with the
        invalid record serialized as JSON

    Raises:
        ValidationException: If the configuration does not fit df's schema
    """
    input_schema = df.schema

    # Validate on the driver before any job is submitted
    driver_transform = DateTransform(config, stage_name)
    driver_transform.prepare_run(input_schema)
    driver_transform.initialize()
    output_schema = driver_transform.output_schema

    logger.info(f"Applying {stage_name} to DataFrame with columns {df.columns}")

    tagged = df.rdd.mapPartitions(
        lambda rows: _transform_partition(rows, config, input_schema, stage_name)
    ).setName(f"{stage_name} tagged rows").cache()

    spark = df.sparkSession
    try:
        output_df = spark.createDataFrame(
            tagged.filter(lambda item: item[0] == _OUTPUT).map(lambda item: item[1]),
            output_schema,
        ).localCheckpoint(eager=True)
        error_df = spark.createDataFrame(
            tagged.filter(lambda item: item[0] == _ERROR).map(lambda item: item[1]),
            ERROR_SCHEMA,
        ).localCheckpoint(eager=True)
    finally:
        tagged.unpersist()
    return output_df, error_df
