# clones Errors
# Exception hierarchy shared by the stores, resolver and adapter


class ClonesError(Exception):
    """Base exception for all clones errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MalformedLocation(ClonesError, ValueError):
    """Raised when a repository location string cannot be parsed."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(
            f"Invalid Git URL format: {location}\n"
            "Expected SSH (git@host:owner/repo.git) or HTTPS (https://host/owner/repo.git)"
        )


class CorruptDocument(ClonesError):
    """Raised when a persisted document cannot be reconciled against."""

    def __init__(self, message: str, path: object = None):
        self.path = path
        super().__init__(message)


class CorruptRegistry(CorruptDocument):
    """Registry document is unparseable or lacks identity fields."""


class CorruptLocalState(CorruptDocument):
    """Local state document is unparseable."""


class DuplicateId(ClonesError):
    """Raised when adding an id that is already present."""

    def __init__(self, repo_id: str, message: str | None = None):
        self.repo_id = repo_id
        super().__init__(message or f"Repository already exists in registry: {repo_id}")


class NotFound(ClonesError):
    """Raised when updating or removing an id that is absent."""

    def __init__(self, repo_id: str):
        self.repo_id = repo_id
        super().__init__(f"Repository not found in registry: {repo_id}")


class ConfigError(ClonesError):
    """Raised when the configuration file cannot be loaded."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)
