"""
Configuration management for the recipe runner.
Simple YAML-based recipe table layered over the built-in recipes.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError


DEFAULT_CONFIG = {
    "global": {
        "working_directory": ".",
        "echo_commands": True,
    },
    "recipes": {
        "commit": {
            "description": "Test, lint, format, then commit and push all changes",
            "params": ["message"],
            "steps": [
                "cargo test",
                "cargo clippy -- -Dclippy::all -Dwarnings",
                "cargo fmt",
                "git add .",
                "git commit -m {{message}}",
                "git push",
            ],
        },
        "publish": {
            "description": "Commit a version bump and publish the package",
            "params": ["version"],
            "steps": [
                {
                    "recipe": "commit",
                    "args": ["update version to {{version}} in Cargo.toml"],
                },
                "cargo publish",
            ],
        },
    },
}

CONFIG_FILENAMES = ["recipes.yml", ".recipes.yml", "recipes.yaml"]
ENV_PREFIX = "RECIPES_GLOBAL_"


def find_config_file(search_dir: Optional[Path] = None) -> Optional[Path]:
    """Return the first recipe file found in ``search_dir`` (default: cwd)."""
    directory = Path(search_dir) if search_dir else Path.cwd()
    for filename in CONFIG_FILENAMES:
        path = directory / filename
        if path.is_file():
            return path
    return None


def load_config(
    config_path: Optional[str] = None, search_dir: Optional[Path] = None
) -> Dict[str, Any]:
    """
    Load recipe configuration from YAML file with fallback to defaults.

    Args:
        config_path: Optional explicit path to a recipe file; must exist
        search_dir: Directory searched for a recipe file when no path is given

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: if the file is missing, unreadable or not a mapping
    """
    if config_path:
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ConfigError(f"Recipe file not found: {config_file}")
    else:
        config_file = find_config_file(search_dir)

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_file:
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load recipes from {config_file}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigError(f"{config_file} must contain a mapping at the top level")

        if "global" in user_config and user_config["global"] is None:
            user_config["global"] = {}
        if not isinstance(user_config.get("global", {}), dict):
            raise ConfigError(f"{config_file}: 'global' must be a mapping")

        config = _deep_merge(config, user_config)
        config["source"] = str(config_file)

    return _apply_env_overrides(config)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to the ``global`` section.

    Example: RECIPES_GLOBAL_WORKING_DIRECTORY=/src/app
    """
    settings = config.get("global") or {}
    config["global"] = settings

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        key = env_key[len(ENV_PREFIX) :].lower()
        if key:
            settings[key] = _convert_env_value(env_value)

    return config


def as_bool(value: Any) -> bool:
    """
    Interpret a config value as a boolean.

    Accepts real booleans and the same strings as environment overrides
    ("true"/"false", "yes"/"no", "on"/"off").

    Raises:
        ConfigError: for anything else
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        converted = _convert_env_value(value)
        if isinstance(converted, bool):
            return converted
    raise ConfigError(f"Expected a boolean, got {value!r}")


def _convert_env_value(value: str) -> Any:
    """
    Convert environment variable string to appropriate Python type.

    Args:
        value: Environment variable value

    Returns:
        Converted value
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    elif value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    return value
