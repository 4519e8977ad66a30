"""Configuration loading with fail-fast behavior.

Lookup order when no explicit path is given:
1. ./bunson.json in the working directory
2. Built-in defaults

BUNSON_HOST and BUNSON_PORT environment variables override the server
section of whichever config was loaded.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from bunson.config.schema import Config
from bunson.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "bunson.json"


def _read_config_file(path: Path, required: bool) -> dict[str, Any] | None:
    """Read a config file into a dict.

    Returns None when the file is absent and not required. A blank file
    reads as an empty config.
    """
    if not path.is_file():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        return None

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must hold a JSON object, got {type(data).__name__}")
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    server = dict(data.get("server") or {})
    if host := os.environ.get("BUNSON_HOST"):
        server["host"] = host
    if port := os.environ.get("BUNSON_PORT"):
        try:
            server["port"] = int(port)
        except ValueError as e:
            raise ConfigError(f"BUNSON_PORT must be an integer, got: {port!r}") from e
    if server:
        data = {**data, "server": server}
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration from file.

    Args:
        path: Explicit config file path. Must exist if given.
        cwd: Directory searched for bunson.json. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file is missing (explicit path only), contains
            invalid JSON, or fails validation.
    """
    source = path if path is not None else (cwd or Path.cwd()) / CONFIG_FILENAME
    data = _read_config_file(source, required=path is not None)

    if data is None:
        logger.debug("No config at %s, using defaults", source)
        data = {}
    else:
        logger.debug("Loaded config from %s", source)

    data = _apply_env_overrides(data)

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {source}: {e}") from e
