"""
Transform configuration loading.

Loads date transform settings from YAML files.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from .transform_config import DateTransformConfig


class TransformConfigLoader:
    """
    Loads a DateTransformConfig from a YAML configuration file.

    Expected YAML format:
    ```yaml
    date_transform:
      source_fields: "created_at, updated_ts"
      source_format: "MM/dd/yy"
      target_fields: "created_date, updated_date"
      target_format: "yyyy-MM-dd"
      seconds_or_milliseconds: Seconds
      timezone: UTC
      output_schema:
        type: struct
        fields:
          - {name: created_date, type: string, nullable: true}
          - {name: updated_date, type: string, nullable: true}
      deferred: [source_format]
    ```

    ``output_schema`` may also be given as a JSON string.
    """

    SECTION = "date_transform"

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Transform configuration file not found: {config_path}")

    def load(self) -> DateTransformConfig:
        """
        Load and parse the transform configuration.

        Returns:
            DateTransformConfig built from the file

        Raises:
            ValueError: If the YAML is invalid or the section is missing
        """
        with open(self.config_path) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not config or self.SECTION not in config:
            raise ValueError(f"Configuration file must contain '{self.SECTION}' section")

        section = config[self.SECTION]
        if not isinstance(section, dict):
            raise ValueError(f"'{self.SECTION}' section must be a mapping")

        return DateTransformConfig(**self._normalize(section))

    def _normalize(self, section: dict[str, Any]) -> dict[str, Any]:
        settings = dict(section)

        schema = settings.get("output_schema")
        if isinstance(schema, (dict, list)):
            settings["output_schema"] = json.dumps(schema)

        # YAML lists are accepted for the comma-separated field settings
        for key in ("source_fields", "target_fields"):
            if isinstance(settings.get(key), list):
                settings[key] = ", ".join(str(name) for name in settings[key])

        deferred = settings.get("deferred")
        if deferred is None:
            settings.pop("deferred", None)
        elif isinstance(deferred, str):
            settings["deferred"] = [deferred]

        return settings
