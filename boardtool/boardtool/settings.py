"""Layered YAML settings.

Resolution order (later wins):
1. Built-in defaults
2. Settings file ({$BOARDTOOL_HOME or ~/.boardtool}/boardtool.yaml, or an
   explicit path)
3. Environment overrides: BOARDTOOL_<SECTION>_<KEY>, e.g.
   BOARDTOOL_LOGGING_LEVEL=debug
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from boardtool.constants import SETTINGS_FILE, USER_DIR
from boardtool.primitives.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "BOARDTOOL_"


def get_user_home(env: Optional[Mapping[str, str]] = None) -> Path:
    """Base directory for settings, data and logs."""
    env = os.environ if env is None else env
    home = env.get("BOARDTOOL_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / USER_DIR


def default_settings(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    data_dir = get_user_home(env)
    return {
        "logging": {
            "level": "info",
            "format": "text",
        },
        "board_manager": {
            "additional_urls": [],
        },
        "directories": {
            "data": str(data_dir),
            "downloads": str(data_dir / "staging"),
            "user": str(Path.home() / "Arduino"),
        },
        "daemon": {
            "port": "50051",
        },
        "telemetry": {
            "enabled": True,
            "addr": ":9090",
        },
    }


def _merge(base: Dict, override: Mapping) -> Dict:
    """Deep merge override into base. Dicts merge, everything else replaces."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _coerce(current: Any, raw: str) -> Any:
    """Convert an environment string to the type of the current value."""
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, list):
        return [item for item in raw.split() if item]
    return raw


class Settings:
    """Resolved settings with dotted-key access."""

    def __init__(self, data: Dict[str, Any], source: Optional[Path] = None):
        self._data = data
        self.source = source

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. ``settings.get("logging.level")``."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @property
    def data_dir(self) -> Path:
        return Path(self.get("directories.data")).expanduser()


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid settings file {path}", field="config_file", cause=e) from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"settings file {path} must contain a mapping", field="config_file"
        )
    return data


def _env_overrides(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for section, values in data.items():
        if not isinstance(values, dict):
            continue
        for key, current in values.items():
            var = f"{ENV_PREFIX}{section}_{key}".upper()
            if var in env:
                overrides.setdefault(section, {})[key] = _coerce(current, env[var])
    return overrides


def load_settings(
    config_file: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings: defaults -> settings file -> environment.

    Args:
        config_file: Explicit settings file. Must exist when given.
        env: Environment mapping (defaults to os.environ).

    Raises:
        ConfigurationError: If the settings file is missing or invalid.
    """
    env = os.environ if env is None else env
    data = default_settings(env)

    if config_file is not None:
        path = Path(config_file).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"settings file not found: {path}", field="config_file")
    else:
        path = get_user_home(env) / SETTINGS_FILE

    source = None
    if path.is_file():
        data = _merge(data, _load_yaml(path))
        source = path
        logger.debug("Loaded settings from %s", path)

    data = _merge(data, _env_overrides(data, env))
    return Settings(data, source=source)
