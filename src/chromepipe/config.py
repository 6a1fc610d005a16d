"""Configuration loading for chromepipe.

Values come from ``~/.chromepipe/config.json`` and are then overridden by
``CHROMEPIPE_*`` environment variables.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from chromepipe.errors import InvalidConfiguration
from chromepipe.models import LaunchOptions

log = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".chromepipe"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENV_PREFIX = "CHROMEPIPE_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
_BOOL_KEYS = {"no_sandbox", "discard_stderr"}
_STR_KEYS = {"chrome_executable", "chrome_args", "flag_set", "chrome_version"}


class ChromePipeConfig(LaunchOptions):
    """Launch options plus the optional pre-configured browser version."""

    chrome_version: str | None = None


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise InvalidConfiguration(f"{ENV_PREFIX}{key.upper()} must be a boolean, got {raw!r}")


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key in sorted(_BOOL_KEYS | _STR_KEYS):
        raw = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if raw is None or not raw.strip():
            continue
        overrides[key] = _parse_bool(key, raw) if key in _BOOL_KEYS else raw.strip()
    return overrides


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfiguration(f"cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path} must contain a JSON object")
    return data


def load_config(
    path: Path | None = None, environ: dict[str, str] | None = None
) -> ChromePipeConfig:
    """Load the config file and apply environment overrides."""
    path = CONFIG_FILE if path is None else path
    environ = dict(os.environ) if environ is None else environ
    data = _read_config_file(path)
    data.update(_env_overrides(environ))
    log.debug("config from %s: %s", path, data)
    return ChromePipeConfig.from_mapping(data)


def save_config(config: ChromePipeConfig, path: Path | None = None) -> None:
    """Write ``config`` atomically with owner-only permissions."""
    path = CONFIG_FILE if path is None else path
    os.makedirs(path.parent, mode=0o700, exist_ok=True)
    temp_file = path.with_name(f".{path.name}.{os.getpid()}.{time.time_ns()}.tmp")
    fd = os.open(temp_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(mode="json", exclude_none=True), f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_file, path)
