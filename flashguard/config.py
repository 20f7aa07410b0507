"""
flashguard - Configuration
JSON config file merged over defaults; secrets come from the environment.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Optional

from .errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "flashguard.json"

DEFAULT_CONFIG: dict = {
    "project": "",
    "contracts": {
        "path": "src/",
        "exclude_paths": ["lib/", "test/", "script/", "node_modules/"],
    },
    "output": {
        "dir": "results",
        "formats": ["markdown", "sarif", "json"],
    },
    "fail_on": ["critical", "high"],
    "solodit": {
        "enabled": False,
        "max_results": 3,
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> dict:
    """Load config from `path`, or ./flashguard.json when present.

    An explicitly named file must exist; the implicit one is optional.
    """
    explicit = path is not None
    config_path = Path(path or DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        log.debug("No config file, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (IOError, OSError) as e:
        raise ConfigError(f"could not read {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")

    log.info(f"Loaded config from {config_path}")
    return _merge(DEFAULT_CONFIG, data)


def apply_overrides(config: dict, path: Optional[str] = None, output_dir: Optional[str] = None,
                    fail_on: Optional[list[str]] = None) -> dict:
    """Apply command-line overrides on top of a loaded config."""
    overrides: dict = {}
    if path:
        overrides["contracts"] = {"path": path}
    if output_dir:
        overrides["output"] = {"dir": output_dir}
    if fail_on is not None:
        overrides["fail_on"] = [s.lower() for s in fail_on]
    return _merge(config, overrides)
