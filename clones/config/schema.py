# clones Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from clones.registry.schema import (
    DEFAULT_LFS,
    DEFAULT_REMOTE_NAME,
    DEFAULT_SUBMODULES,
    DEFAULT_UPDATE_STRATEGY,
    LfsPolicy,
    SubmodulePolicy,
    UpdateStrategy,
)

DEFAULT_CONTENT_DIR = "~/Clones"
DEFAULT_CONCURRENCY = 4
MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10


class MetadataConfig(BaseModel):
    """Remote metadata enrichment settings."""

    enabled: bool = Field(default=True, description="Fetch description and topics from the hosting API")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")


class EntryDefaults(BaseModel):
    """Behavior applied to newly added or adopted entries."""

    update_strategy: UpdateStrategy = Field(default=DEFAULT_UPDATE_STRATEGY, description="hard-reset or ff-only")
    submodules: SubmodulePolicy = Field(default=DEFAULT_SUBMODULES, description="none or recursive")
    lfs: LfsPolicy = Field(default=DEFAULT_LFS, description="auto, always or never")
    default_remote_name: str = Field(default=DEFAULT_REMOTE_NAME, min_length=1, description="Remote name for clones")


class OutputConfig(BaseModel):
    """Output configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class ClonesConfig(BaseModel):
    """Root configuration model for clones."""

    content_dir: str = Field(default=DEFAULT_CONTENT_DIR, description="Root directory for checkouts")
    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        ge=MIN_CONCURRENCY,
        le=MAX_CONCURRENCY,
        description="Parallel git operations during sync",
    )
    metadata: MetadataConfig = Field(default_factory=MetadataConfig, description="Metadata settings")
    defaults: EntryDefaults = Field(default_factory=EntryDefaults, description="New entry defaults")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("content_dir")
    @classmethod
    def expand_content_dir(cls, v: str) -> str:
        """Expand ~ in path."""
        if not v.strip():
            raise ValueError("content_dir must not be empty")
        return str(Path(v).expanduser())
