"""
Transform configuration model and loading.
"""

from .config_loader import TransformConfigLoader
from .transform_config import DEFAULT_FORMAT, DateTransformConfig, TimeUnit

__all__ = [
    "DateTransformConfig",
    "TimeUnit",
    "TransformConfigLoader",
    "DEFAULT_FORMAT",
]
