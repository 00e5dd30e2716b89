# clones Git Module
# Git operations for cloning and updating checkouts

from clones.git.adapter import GitAdapter, VcsAdapter
from clones.git.operations import (
    GitError,
    RepoStatus,
    clone_repo,
    count_commits,
    fast_forward_pull,
    fetch_pruned,
    get_head,
    get_remote_url,
    get_repo_status,
    parse_porcelain_status,
    pull_lfs,
    reset_to_upstream,
    update_submodules,
    uses_lfs,
)

__all__ = [
    "GitAdapter",
    "VcsAdapter",
    "GitError",
    "RepoStatus",
    "get_repo_status",
    "parse_porcelain_status",
    "get_remote_url",
    "get_head",
    "count_commits",
    "clone_repo",
    "fetch_pruned",
    "reset_to_upstream",
    "fast_forward_pull",
    "update_submodules",
    "uses_lfs",
    "pull_lfs",
]
