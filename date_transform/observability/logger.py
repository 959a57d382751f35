"""
Structured logging for date-transform

Every package logger is a child of the ``date_transform`` logger, which owns
the single stderr handler (stdout carries transformed records in the CLI).
Records can carry the transform stage and the source/target field being
converted; both the JSON and the text format render that context.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

PACKAGE_LOGGER = "date_transform"

# Record attributes rendered as transform context, in this order
CONTEXT_FIELDS = ("stage", "field", "target_field")

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _StderrHandler(logging.StreamHandler):
    """Stream handler bound to the current sys.stderr at emit time."""

    def __init__(self):
        logging.Handler.__init__(self)

    @property
    def stream(self):
        return sys.stderr


class TransformJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for transform logs

    Adds timestamp, level and logger name, and drops context fields that a
    record leaves unset so field-less lines stay short.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        for key in CONTEXT_FIELDS:
            if log_record.get(key) is None:
                log_record.pop(key, None)


class TransformTextFormatter(logging.Formatter):
    """Plain text formatter that appends ``[stage=... field=...]`` context."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        return f"{line} [{context}]" if context else line


class StageLogger(logging.LoggerAdapter):
    """
    Logger adapter that tags every record with a transform stage

    Per-call ``extra`` values are merged over the stage context, so
    ``logger.error(msg, extra={"field": "a"})`` keeps the stage.
    """

    def __init__(self, logger: logging.Logger, stage: str):
        super().__init__(logger, {"stage": stage})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    @property
    def stage(self) -> str:
        return self.extra["stage"]


def configure_logging(level: str | None = None, format_type: str | None = None) -> logging.Logger:
    """
    Configure the package logger

    Replaces any previous handler, so calling it again switches level or
    format for every package logger.

    Args:
        level: Log level name (defaults to LOG_LEVEL env var, then INFO)
        format_type: "json" or "text" (defaults to LOG_FORMAT env var, then json)

    Returns:
        The package logger
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(LOG_LEVELS.get(level_name, logging.INFO))
    package_logger.handlers.clear()

    handler = _StderrHandler()
    if format_type == "json":
        handler.setFormatter(TransformJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        ))
    else:
        handler.setFormatter(TransformTextFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    package_logger.addHandler(handler)
    package_logger.propagate = False
    return package_logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Get a package logger, configuring the package logger on first use

    Args:
        name: Logger name, normally ``__name__`` of a package module
    """
    if not logging.getLogger(PACKAGE_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(name)


def get_stage_logger(name: str, stage: str) -> StageLogger:
    """Get a package logger whose records carry the given stage name."""
    return StageLogger(get_logger(name), stage)


class log_batch:
    """
    Context manager logging one batch of records through a stage

    Counts are added while the batch runs and reported with the duration
    when it ends. Exceptions are logged and propagated.

    Usage:
        with log_batch(stage_logger, "stdin") as batch:
            batch.add(emitted=1)
    """

    def __init__(self, logger: logging.Logger | StageLogger, source: str):
        self.logger = logger
        self.source = source
        self.emitted = 0
        self.errors = 0
        self.start_time = None

    def add(self, emitted: int = 0, errors: int = 0) -> None:
        self.emitted += emitted
        self.errors += errors

    def _summary(self) -> dict:
        return {
            "source": self.source,
            "emitted": self.emitted,
            "errors": self.errors,
            "duration_seconds": round(time.perf_counter() - self.start_time, 3),
        }

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(f"Transforming records from {self.source}", extra={"source": self.source})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        summary = self._summary()
        if exc_type is None:
            self.logger.info(
                f"Transformed records from {self.source}: "
                f"{self.emitted} emitted, {self.errors} routed to error",
                extra=summary,
            )
        else:
            self.logger.error(
                f"Transform of {self.source} failed after {self.emitted} records: {exc_val}",
                extra={**summary, "error_type": exc_type.__name__},
            )
        return False
