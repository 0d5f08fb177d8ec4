from __future__ import annotations

import codecs
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (``config/datastream.yml`` unless told otherwise)
- Validate it against the bundled JSON schema
- Apply defaults for every key that is not set
"""

__all__ = [
    "ConfigError",
    "Settings",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
    "load_config",
    "resolve_config_path",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/datastream.yml")
CONFIG_ENV_VAR = "DATASTREAM_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    chunk_size: int = 10_000  # 1 バッチあたりの行数
    isolated_threshold_bytes: int = 5 * 1024 * 1024  # これ以上は別プロセスで decode
    encoding: str = "utf-8"
    characteristic_name: str = "Temperature, water"
    error_log_dir: str = "./logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data violates it (unknown keys, wrong types, out-of-range values).
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


def resolve_config_path(explicit: Path | None = None) -> tuple[Path, bool]:
    """Pick the config file to load.

    Order: explicit argument, then ``$DATASTREAM_CONFIG``, then the default path.

    Returns:
        (path, required) - ``required`` is False only for the default path,
        which may legitimately be absent.
    """
    if explicit is not None:
        return explicit, True
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Path | None = None, *, required: bool = True) -> Settings:
    if path is None:
        path, required = resolve_config_path()
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return Settings()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    encoding = data.get("encoding")
    if encoding is not None:
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigError(f"unknown encoding: {encoding}") from e

    defaults = Settings()
    return Settings(
        chunk_size=data.get("chunk_size", defaults.chunk_size),
        isolated_threshold_bytes=data.get(
            "isolated_threshold_bytes", defaults.isolated_threshold_bytes
        ),
        encoding=encoding or defaults.encoding,
        characteristic_name=data.get("characteristic_name", defaults.characteristic_name),
        error_log_dir=data.get("error_log_dir", defaults.error_log_dir),
    )
