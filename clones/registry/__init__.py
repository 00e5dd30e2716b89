# clones Registry Module
# Identity resolution, registry document and machine-local state

from clones.registry.identity import (
    ParsedLocation,
    generate_id,
    is_valid_location,
    make_id,
    normalize_location,
    parse_location,
)
from clones.registry.local_state import (
    LocalState,
    LocalStateStore,
    RepoLocalState,
    normalize_local_state,
    prune_local_state,
    remove_repo_local_state,
    update_last_sync_run,
    update_repo_local_state,
)
from clones.registry.schema import (
    LfsPolicy,
    Normalized,
    Registry,
    RegistryEntry,
    SubmodulePolicy,
    UpdateStrategy,
    normalize_registry,
    utc_timestamp,
)
from clones.registry.store import (
    REGISTRY_FILENAME,
    RegistryStore,
    add_entry,
    add_tombstone,
    filter_by_pattern,
    filter_by_tags,
    find_entry,
    find_entry_by_owner_name,
    remove_entry,
    remove_tombstone,
    update_entry,
)

__all__ = [
    # Identity
    "ParsedLocation",
    "parse_location",
    "normalize_location",
    "generate_id",
    "make_id",
    "is_valid_location",
    # Schema
    "Registry",
    "RegistryEntry",
    "UpdateStrategy",
    "SubmodulePolicy",
    "LfsPolicy",
    "Normalized",
    "normalize_registry",
    "utc_timestamp",
    # Store
    "REGISTRY_FILENAME",
    "RegistryStore",
    "find_entry",
    "find_entry_by_owner_name",
    "add_entry",
    "update_entry",
    "remove_entry",
    "add_tombstone",
    "remove_tombstone",
    "filter_by_tags",
    "filter_by_pattern",
    # Local state
    "LocalState",
    "LocalStateStore",
    "RepoLocalState",
    "normalize_local_state",
    "update_repo_local_state",
    "remove_repo_local_state",
    "update_last_sync_run",
    "prune_local_state",
]
