# clones Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "~/Clones",
    "concurrency": 4,
    "metadata": {
        "enabled": True,
        "timeout": 10.0,
    },
    "defaults": {
        "update_strategy": "hard-reset",
        "submodules": "none",
        "lfs": "auto",
        "default_remote_name": "origin",
    },
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def get_default_config() -> dict[str, Any]:
    """Get a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# clones - Git checkout registry configuration
#
# content_dir: root of the owner/name checkout tree
#   (overridden by $CLONES_CONTENT_DIR or $CLONES_DIR)
# concurrency: parallel clone/update workers (1-10)
#
# Update strategies:
#   - hard-reset: reset the current branch to its upstream
#   - ff-only: fast-forward pull, fail if the branches diverged
#
# Submodules: none | recursive
# LFS: auto (when .gitattributes uses LFS) | always | never

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
