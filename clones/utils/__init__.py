# clones Utilities Module
# Helper functions for path handling

from clones.utils.paths import (
    atomic_write,
    ensure_dir,
    safe_delete,
)

__all__ = [
    "ensure_dir",
    "safe_delete",
    "atomic_write",
]
