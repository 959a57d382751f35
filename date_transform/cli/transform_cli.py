"""
Command-line interface for the date transform.

Usage:
    date-transform validate --config <config.yaml> [--input-schema <schema.json>]
    date-transform run --config <config.yaml> --input-schema <schema.json> [options]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from pyspark.sql.types import StructType

from date_transform.config import DateTransformConfig, TransformConfigLoader
from date_transform.core.models import InvalidEntry, StructuredRecord
from date_transform.core.schema import get_field, parse_schema_json
from date_transform.core.validators import ValidationException
from date_transform.observability.logger import get_logger, log_batch
from date_transform.observability.metrics import start_metrics_server
from date_transform.transform import DateTransform, DateTransformError, ListEmitter

logger = get_logger(__name__)


def load_config(path: str) -> DateTransformConfig:
    return TransformConfigLoader(path).load()


def load_schema(path: str) -> StructType:
    """
    Load a Spark struct schema from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        SchemaParseError: If the file is not a valid schema
    """
    schema_path = Path(path)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    return parse_schema_json(schema_path.read_text())


def print_failures(error: ValidationException, stream: TextIO) -> None:
    print(f"\nValidation failed with {len(error.failures)} error(s):", file=stream)
    for failure in error.failures:
        print(f"  - {failure.message}", file=stream)
        if failure.corrective_action:
            print(f"      fix: {failure.corrective_action}", file=stream)
        properties = failure.config_properties
        if properties:
            print(f"      properties: {', '.join(properties)}", file=stream)


def record_from_json(line: str, schema: StructType) -> StructuredRecord:
    """Build a record from one JSON object, keeping only fields the schema declares."""
    payload = json.loads(line)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    values = {name: value for name, value in payload.items() if get_field(schema, name) is not None}
    return StructuredRecord(record_schema=schema, values=values)


def entry_to_json(entry: InvalidEntry) -> str:
    return json.dumps({
        "error_code": entry.error_code,
        "error_message": entry.error_message,
        "invalid_record": entry.invalid_record.to_dict(),
    }, default=str)


def validate_command(args) -> int:
    """
    Validate a transform configuration.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code
    """
    try:
        config = load_config(args.config)
        input_schema = load_schema(args.input_schema) if args.input_schema else None
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot load configuration: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    transform = DateTransform(config)
    try:
        output_schema = transform.configure_pipeline(input_schema)
    except ValidationException as e:
        print_failures(e, sys.stdout)
        return 1

    print("Configuration is valid.")
    if output_schema is not None:
        print(f"Output fields: {', '.join(output_schema.fieldNames())}")
    if config.deferred:
        print(f"Deferred properties: {', '.join(sorted(config.deferred))}")
    return 0


def run_command(args, stdin: TextIO = None, stdout: TextIO = None, stderr: TextIO = None) -> int:
    """
    Transform JSON-lines records.

    Output records are written to stdout, error entries to stderr (or the
    --errors file), one JSON object per line.

    Args:
        args: Command-line arguments
        stdin: Input stream (default: sys.stdin)
        stdout: Output stream (default: sys.stdout)
        stderr: Error entry stream (default: sys.stderr)

    Returns:
        Process exit code
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        config = load_config(args.config)
        input_schema = load_schema(args.input_schema)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot load configuration: {e}")
        print(f"Error: {e}", file=stderr)
        return 1

    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info(f"Metrics server listening on port {args.metrics_port}")

    transform = DateTransform(config)
    try:
        transform.prepare_run(input_schema)
        transform.initialize()
    except ValidationException as e:
        print_failures(e, stderr)
        return 1

    error_stream = open(args.errors, "w") if args.errors else stderr
    emitter = ListEmitter()
    try:
        with log_batch(transform.logger, "stdin") as batch:
            for line_number, line in enumerate(stdin, start=1):
                if not line.strip():
                    continue
                try:
                    record = record_from_json(line, input_schema)
                except ValueError as e:
                    raise ValueError(f"Line {line_number}: {e}") from e

                transform.transform(record, emitter)

                for output in emitter.emitted:
                    stdout.write(json.dumps(output.to_dict(), default=str) + "\n")
                for entry in emitter.errors:
                    error_stream.write(entry_to_json(entry) + "\n")
                batch.add(emitted=len(emitter.emitted), errors=len(emitter.errors))
                emitter.clear()
    except (DateTransformError, ValueError) as e:
        print(f"Error: {e}", file=stderr)
        return 1
    finally:
        if args.errors:
            error_stream.close()

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="date-transform",
        description="Convert date fields of records into formatted date strings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a configuration before deploying it
  date-transform validate --config config/dates.yaml --input-schema schemas/events.json

  # Transform JSON-lines records
  date-transform run --config config/dates.yaml --input-schema schemas/events.json \\
      < events.jsonl > events_out.jsonl

  # Keep error entries in a separate file
  date-transform run --config config/dates.yaml --input-schema schemas/events.json \\
      --errors errors.jsonl < events.jsonl
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a transform configuration")
    validate_parser.add_argument(
        "--config",
        required=True,
        help="Path to the transform YAML configuration"
    )
    validate_parser.add_argument(
        "--input-schema",
        help="Path to the input schema JSON (optional)"
    )

    # Run command
    run_parser = subparsers.add_parser("run", help="Transform JSON-lines records from stdin")
    run_parser.add_argument(
        "--config",
        required=True,
        help="Path to the transform YAML configuration"
    )
    run_parser.add_argument(
        "--input-schema",
        required=True,
        help="Path to the input schema JSON"
    )
    run_parser.add_argument(
        "--errors",
        help="Write error entries to this file instead of stderr"
    )
    run_parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port while running"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "validate":
        return validate_command(args)
    if args.command == "run":
        return run_command(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
