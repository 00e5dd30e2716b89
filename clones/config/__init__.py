# clones Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from clones.config.defaults import DEFAULT_CONFIG, generate_default_config
from clones.config.loader import (
    ensure_config_exists,
    get_config_dir,
    get_config_path,
    get_content_dir,
    get_local_state_path,
    get_registry_path,
    load_config,
    save_config,
    validate_config_file,
)
from clones.config.schema import (
    ClonesConfig,
    EntryDefaults,
    MetadataConfig,
    OutputConfig,
)

__all__ = [
    # Schema
    "ClonesConfig",
    "EntryDefaults",
    "MetadataConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "save_config",
    "get_config_dir",
    "get_config_path",
    "get_content_dir",
    "get_registry_path",
    "get_local_state_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
