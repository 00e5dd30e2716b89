"""clones - a registry of Git checkouts kept in sync across machines.

A shared registry document lists the repositories you want; every machine
reconciles it against its own checkout tree (adopt, clone, update) while
keeping sync history in a separate machine-local document.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "RegistryStore",
    "LocalStateStore",
    "SyncOrchestrator",
    "SyncOptions",
    "SyncResult",
    "GitAdapter",
    "parse_location",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("RegistryStore", "LocalStateStore", "parse_location"):
        from clones import registry

        return getattr(registry, name)
    if name in ("SyncOrchestrator", "SyncOptions", "SyncResult"):
        from clones import sync

        return getattr(sync, name)
    if name == "GitAdapter":
        from clones.git import GitAdapter

        return GitAdapter
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
