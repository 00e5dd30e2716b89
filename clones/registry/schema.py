# clones Registry Schema
# Pydantic models for the registry document and its normalization pass

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from clones.errors import CorruptRegistry

REGISTRY_VERSION = "1.0.0"
ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

T = TypeVar("T")


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


class UpdateStrategy(str, Enum):
    """How an existing checkout is brought up to date."""

    HARD_RESET = "hard-reset"
    FF_ONLY = "ff-only"


class SubmodulePolicy(str, Enum):
    """Submodule handling after an update."""

    NONE = "none"
    RECURSIVE = "recursive"


class LfsPolicy(str, Enum):
    """Git LFS handling after an update."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


# Defaults applied to new entries and to invalid values on read
DEFAULT_REMOTE_NAME = "origin"
DEFAULT_UPDATE_STRATEGY = UpdateStrategy.HARD_RESET
DEFAULT_SUBMODULES = SubmodulePolicy.NONE
DEFAULT_LFS = LfsPolicy.AUTO
DEFAULT_ADDED_BY = "manual"


class RegistryEntry(BaseModel):
    """One desired repository checkout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Identity
    id: str
    host: str
    owner: str
    name: str
    clone_url: str = Field(alias="cloneUrl")

    # Metadata
    description: str | None = None
    tags: tuple[str, ...] | None = None

    # Behavior
    default_remote_name: str = Field(default=DEFAULT_REMOTE_NAME, alias="defaultRemoteName")
    update_strategy: UpdateStrategy = Field(default=DEFAULT_UPDATE_STRATEGY, alias="updateStrategy")
    submodules: SubmodulePolicy = DEFAULT_SUBMODULES
    lfs: LfsPolicy = DEFAULT_LFS

    # Lifecycle
    added_at: str = Field(default_factory=utc_timestamp, alias="addedAt")
    added_by: str = Field(default=DEFAULT_ADDED_BY, alias="addedBy")
    managed: bool = True

    @property
    def full_name(self) -> str:
        """owner/name display form."""
        return f"{self.owner}/{self.name}"

    def to_document(self) -> dict[str, Any]:
        """Convert to the persisted document form."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        if self.tags is not None:
            data["tags"] = list(self.tags)
        return data


class Registry(BaseModel):
    """Desired-state document: entries plus tombstoned ids."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = REGISTRY_VERSION
    entries: tuple[RegistryEntry, ...] = Field(default=(), alias="repos")
    tombstones: tuple[str, ...] = ()

    @property
    def ids(self) -> set[str]:
        """Ids of all active entries."""
        return {entry.id for entry in self.entries}

    def to_document(self) -> dict[str, Any]:
        """Convert to the persisted document form."""
        return {
            "version": self.version,
            "repos": [entry.to_document() for entry in self.entries],
            "tombstones": list(self.tombstones),
        }


@dataclass
class Normalized(Generic[T]):
    """Result of a normalization pass."""

    data: T
    issues: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Whether normalization had to alter the input."""
        return len(self.issues) > 0


REGISTRY_KEYS = frozenset({"version", "repos", "tombstones"})

REGISTRY_ENTRY_KEYS = frozenset(
    {
        "id",
        "host",
        "owner",
        "name",
        "cloneUrl",
        "description",
        "tags",
        "defaultRemoteName",
        "updateStrategy",
        "submodules",
        "lfs",
        "addedAt",
        "addedBy",
        "managed",
    }
)


def _require_string(raw: dict[str, Any], key: str, prefix: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise CorruptRegistry(f"Invalid registry format ({prefix} missing {key})")
    return value


def _enum_or_default(value: Any, enum_cls: type[Enum], default: Enum, label: str, issues: list[str]) -> Any:
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value == value:
            return member
    issues.append(f"{label} defaulted to {default.value!r} (was {value!r})")
    return default


def _normalize_tags(value: Any, label: str, issues: list[str]) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        issues.append(f"{label} dropped invalid tags")
        return None

    strings = [tag for tag in value if isinstance(tag, str)]
    if len(strings) != len(value):
        issues.append(f"{label} dropped non-string tags")
    unique = sorted(set(strings))
    if len(unique) != len(strings):
        issues.append(f"{label} dropped duplicate tags")
    return tuple(unique) or None


def _normalize_entry(raw: dict[str, Any], index: int, issues: list[str]) -> RegistryEntry:
    prefix = f"registry.repos[{index}]"

    raw = dict(raw)
    if "name" not in raw and "repo" in raw:
        # Older documents used "repo" for the repository name
        raw["name"] = raw.pop("repo")
        issues.append(f'{prefix} renamed legacy field "repo" to "name"')

    for key in raw:
        if key not in REGISTRY_ENTRY_KEYS:
            issues.append(f'{prefix} dropped unknown field "{key}"')

    repo_id = _require_string(raw, "id", prefix)
    host = _require_string(raw, "host", prefix)
    owner = _require_string(raw, "owner", prefix)
    name = _require_string(raw, "name", prefix)
    clone_url = _require_string(raw, "cloneUrl", prefix)

    label = f"{prefix} ({repo_id})"

    if repo_id != f"{host}:{owner}/{name}":
        issues.append(f"{label} id does not match host/owner/name")

    default_remote_name = raw.get("defaultRemoteName")
    if not isinstance(default_remote_name, str) or not default_remote_name:
        issues.append(f"{label} defaulted defaultRemoteName")
        default_remote_name = DEFAULT_REMOTE_NAME

    update_strategy = _enum_or_default(
        raw.get("updateStrategy"), UpdateStrategy, DEFAULT_UPDATE_STRATEGY, f"{label} updateStrategy", issues
    )
    submodules = _enum_or_default(
        raw.get("submodules"), SubmodulePolicy, DEFAULT_SUBMODULES, f"{label} submodules", issues
    )
    lfs = _enum_or_default(raw.get("lfs"), LfsPolicy, DEFAULT_LFS, f"{label} lfs", issues)

    managed = raw.get("managed")
    if not isinstance(managed, bool):
        issues.append(f"{label} defaulted managed")
        managed = True

    added_at = raw.get("addedAt")
    if not isinstance(added_at, str) or not added_at:
        issues.append(f"{label} defaulted addedAt")
        added_at = utc_timestamp()

    added_by = raw.get("addedBy")
    if not isinstance(added_by, str) or not added_by:
        issues.append(f"{label} defaulted addedBy")
        added_by = DEFAULT_ADDED_BY

    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        issues.append(f"{label} dropped invalid description")
        description = None

    return RegistryEntry(
        id=repo_id,
        host=host,
        owner=owner,
        name=name,
        clone_url=clone_url,
        description=description or None,
        tags=_normalize_tags(raw.get("tags"), label, issues),
        default_remote_name=default_remote_name,
        update_strategy=update_strategy,
        submodules=submodules,
        lfs=lfs,
        added_at=added_at,
        added_by=added_by,
        managed=managed,
    )


def _normalize_tombstones(value: Any, active_ids: set[str], issues: list[str]) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        issues.append("registry dropped invalid tombstones")
        return ()

    kept: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item:
            issues.append(f"registry dropped invalid tombstone {item!r}")
        elif item in active_ids:
            issues.append(f'registry dropped tombstone for active entry "{item}"')
        elif item in kept:
            issues.append(f'registry dropped duplicate tombstone "{item}"')
        else:
            kept.append(item)
    return tuple(sorted(kept))


def normalize_registry(raw: Any) -> Normalized[Registry]:
    """
    Validate and normalize a registry document.

    Unknown fields are dropped, invalid enumerated values fall back to their
    defaults, and tombstones that collide with active entries are discarded.
    Every such repair is recorded as an issue rather than raised.

    Args:
        raw: Parsed document (or an existing Registry to re-normalize).

    Returns:
        Normalized registry and the list of issues found.

    Raises:
        CorruptRegistry: If the document is structurally unusable or an
            entry is missing an identity field.
    """
    if isinstance(raw, Registry):
        raw = raw.to_document()

    if not isinstance(raw, dict):
        raise CorruptRegistry("Invalid registry format (document is not an object)")

    issues: list[str] = []

    for key in raw:
        if key not in REGISTRY_KEYS:
            issues.append(f'registry dropped unknown field "{key}"')

    version = raw.get("version")
    if not isinstance(version, str) or not version:
        issues.append("registry defaulted version")
        version = REGISTRY_VERSION

    repos = raw.get("repos", [])
    if not isinstance(repos, list):
        raise CorruptRegistry("Invalid registry format (repos is not a list)")

    entries: list[RegistryEntry] = []
    seen: set[str] = set()
    for index, item in enumerate(repos):
        if not isinstance(item, dict):
            raise CorruptRegistry(f"Invalid registry format (repos[{index}] is not an object)")
        entry = _normalize_entry(item, index, issues)
        if entry.id in seen:
            issues.append(f'registry.repos[{index}] dropped duplicate id "{entry.id}"')
            continue
        seen.add(entry.id)
        entries.append(entry)

    tombstones = _normalize_tombstones(raw.get("tombstones"), seen, issues)

    return Normalized(
        data=Registry(version=version, entries=tuple(entries), tombstones=tombstones),
        issues=issues,
    )
