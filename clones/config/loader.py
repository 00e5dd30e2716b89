# clones Configuration Loader
# Load, save, and manage YAML configuration files and document locations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from clones.config.defaults import generate_default_config, get_default_config
from clones.config.schema import ClonesConfig
from clones.errors import ConfigError
from clones.registry.local_state import LOCAL_STATE_FILENAME
from clones.registry.store import REGISTRY_FILENAME


def get_config_dir() -> Path:
    """
    Get the clones configuration directory.

    Resolution order: $CLONES_CONFIG_DIR, $XDG_CONFIG_HOME/clones,
    ~/.config/clones.
    """
    env_dir = os.environ.get("CLONES_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()

    xdg_dir = os.environ.get("XDG_CONFIG_HOME")
    if xdg_dir:
        return Path(xdg_dir).expanduser() / "clones"

    return Path.home() / ".config" / "clones"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("CLONES_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def get_registry_path() -> Path:
    """Get the path to the shared registry document."""
    return get_config_dir() / REGISTRY_FILENAME


def get_local_state_path() -> Path:
    """Get the path to the machine-local state document."""
    return get_config_dir() / LOCAL_STATE_FILENAME


def get_content_dir(config: Optional[ClonesConfig] = None) -> Path:
    """
    Get the root directory that holds owner/name checkouts.

    Resolution order: $CLONES_CONTENT_DIR, $CLONES_DIR, the config file's
    content_dir, ~/Clones.
    """
    for var in ("CLONES_CONTENT_DIR", "CLONES_DIR"):
        value = os.environ.get(var)
        if value:
            return Path(value).expanduser().absolute()

    if config is None:
        config = ClonesConfig()
    return Path(config.content_dir).expanduser().absolute()


def ensure_config_dir() -> Path:
    """Ensure the configuration directory exists."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def load_config(config_path: Optional[Path] = None) -> ClonesConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        ClonesConfig: Validated configuration (defaults if the file doesn't exist).

    Raises:
        ConfigError: If the file is not valid YAML or fails validation.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return ClonesConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    # Merge with defaults for missing values
    merged = _merge_with_defaults(data)

    try:
        return ClonesConfig.model_validate(merged)
    except ValidationError as e:
        errors = _format_validation_errors(e)
        raise ConfigError(f"Invalid configuration in {config_path}: {'; '.join(errors)}", errors) from e


def save_config(config: ClonesConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Use mode='json' to serialize Enums as their string values
    data = config.model_dump(exclude_none=True, mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists() -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]
    if not isinstance(data, dict):
        return False, ["Configuration must be a mapping"]

    try:
        ClonesConfig.model_validate(data)
    except ValidationError as e:
        return False, _format_validation_errors(e)

    unknown = sorted(set(data) - set(ClonesConfig.model_fields))
    if unknown:
        return False, [f"Unknown setting: {key}" for key in unknown]

    return True, []


def _format_validation_errors(error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        loc = " -> ".join(str(part) for part in item["loc"])
        messages.append(f"{loc}: {item['msg']}")
    return messages


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for key, value in data.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = {**result[key], **value}
        else:
            result[key] = value

    return result
