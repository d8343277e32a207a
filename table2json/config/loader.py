from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ConvertConfig, SinkConfig, SinkKind, SourceMode
from ..services.record_builder import ConflictPolicy

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/table2json.yml``)
- Validate it against ``config_schema.json`` shipped with the package
- Apply defaults and build the frozen ``ConvertConfig``
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/table2json.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_sink(raw: dict[str, Any]) -> SinkConfig:
    defaults = SinkConfig()
    return SinkConfig(
        kind=SinkKind(raw.get("kind", defaults.kind.value)),
        sheet_name=raw.get("sheet_name", defaults.sheet_name),
        output_path=raw.get("output_path"),
        directory=raw.get("directory"),
    )


def load_config(path: Path) -> ConvertConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    return ConvertConfig(
        source_path=data["source_path"],
        source_mode=SourceMode(data.get("source_mode", SourceMode.TABLES.value)),
        header_row=data.get("header_row", 1),
        on_conflict=ConflictPolicy(data.get("on_conflict", ConflictPolicy.ERROR.value)),
        sink=_build_sink(data.get("sink") or {}),
    )
