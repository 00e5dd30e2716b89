# clones Identity Resolver
# Parse repository locations into a canonical identity

import re
from dataclasses import dataclass

from clones.errors import MalformedLocation

# Web UI navigation segments that may follow owner/name in a browser URL
_WEB_UI_SUFFIX = re.compile(
    r"^(?P<base>[a-z]+://[^/]+/[^/]+/[^/]+)"
    r"/(tree|blob|commit|commits|pull|pulls|issues|releases|tags|actions|wiki|"
    r"discussions|security|pulse|graphs|network|settings)(/.*)?$"
)

_SSH_PATTERN = re.compile(r"^(?P<user>[^@/\s]+)@(?P<host>[^:/\s]+):(?P<path>[^\s]+)$")
_URL_PATTERN = re.compile(r"^(?P<scheme>https?|ssh|git)://(?P<netloc>[^/\s]+)/(?P<path>[^\s]*)$")


@dataclass(frozen=True)
class ParsedLocation:
    """Canonical components of a repository location."""

    host: str
    owner: str
    name: str
    clone_url: str

    @property
    def id(self) -> str:
        """Stable identity key."""
        return generate_id(self)

    @property
    def full_name(self) -> str:
        """owner/name display form."""
        return f"{self.owner}/{self.name}"


def normalize_location(location: str) -> str:
    """
    Normalize a location string.

    Trims whitespace, drops query strings and fragments from URL forms and
    strips web UI paths such as ``/tree/main`` or ``/blob/main/file.py``.

    Args:
        location: Raw location string.

    Returns:
        Normalized location string.
    """
    location = location.strip()
    if "://" in location:
        location = re.split(r"[?#]", location, maxsplit=1)[0]
    location = location.rstrip("/")
    return _WEB_UI_SUFFIX.sub(r"\g<base>", location)


def _split_owner_name(path: str, location: str) -> tuple[str, str]:
    """Extract owner and name from the path part, dropping extra segments."""
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) < 2:
        raise MalformedLocation(location)

    owner, name = segments[0], segments[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not owner or not name:
        raise MalformedLocation(location)
    return owner, name


def _strip_userinfo_and_port(netloc: str) -> str:
    host = netloc.rsplit("@", 1)[-1]
    if host.startswith("["):
        # IPv6 literal
        return host.split("]", 1)[0] + "]"
    return host.split(":", 1)[0]


def parse_location(location: str) -> ParsedLocation:
    """
    Parse a Git location (SSH or HTTP(S)) into its components.

    Supports:
    - SSH: git@github.com:owner/repo.git
    - HTTPS: https://github.com/owner/repo.git
    - HTTPS without .git: https://github.com/owner/repo
    - Web UI URLs: https://github.com/owner/repo/tree/main

    Args:
        location: Location string.

    Returns:
        ParsedLocation with clone_url always ending in ``.git``.

    Raises:
        MalformedLocation: If the location matches neither form or lacks
            an owner/name pair.
    """
    if not isinstance(location, str):
        raise MalformedLocation(repr(location))

    normalized = normalize_location(location)

    url_match = _URL_PATTERN.match(normalized)
    if url_match:
        scheme = url_match.group("scheme")
        netloc = url_match.group("netloc")
        owner, name = _split_owner_name(url_match.group("path"), location)
        host = _strip_userinfo_and_port(netloc).lower()
        if not host:
            raise MalformedLocation(location)
        return ParsedLocation(
            host=host,
            owner=owner,
            name=name,
            clone_url=f"{scheme}://{netloc}/{owner}/{name}.git",
        )

    ssh_match = _SSH_PATTERN.match(normalized)
    if ssh_match:
        user = ssh_match.group("user")
        host = ssh_match.group("host")
        owner, name = _split_owner_name(ssh_match.group("path"), location)
        return ParsedLocation(
            host=host.lower(),
            owner=owner,
            name=name,
            clone_url=f"{user}@{host}:{owner}/{name}.git",
        )

    raise MalformedLocation(location)


def generate_id(parsed: ParsedLocation) -> str:
    """
    Generate the identity key for a repository.

    Format: host:owner/name

    Args:
        parsed: Parsed location.

    Returns:
        Identity key.
    """
    return make_id(parsed.host, parsed.owner, parsed.name)


def make_id(host: str, owner: str, name: str) -> str:
    """Build an identity key from its structural parts."""
    return f"{host}:{owner}/{name}"


def is_valid_location(location: str) -> bool:
    """Check whether a string parses as a Git location."""
    try:
        parse_location(location)
        return True
    except MalformedLocation:
        return False
