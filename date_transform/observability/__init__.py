"""
Logging and metrics for the date transform.
"""

from .logger import StageLogger, configure_logging, get_logger, get_stage_logger, log_batch
from .metrics import MetricsCollector, generate_metrics, start_metrics_server

__all__ = [
    "StageLogger",
    "configure_logging",
    "get_logger",
    "get_stage_logger",
    "log_batch",
    "MetricsCollector",
    "generate_metrics",
    "start_metrics_server",
]
