# src/gitcache/services/sync.py
from __future__ import annotations

import logging
from pathlib import Path

from ..errors import FetchFailed, ResolveFailed
from ..util.git_cmd import GitError, Vcs, sanitize_remote

logger = logging.getLogger(__name__)


def sync(vcs: Vcs, mirror: Path, repo_url: str, branch: str) -> None:
    """
    Force-fetch `branch` from `repo_url` into the same-named ref of the mirror.
    Unreachable host, unknown branch and auth failure all surface as FetchFailed.
    """
    try:
        vcs.fetch(mirror, repo_url, branch)
    except GitError as e:
        logger.error("Error fetching %s from %s: %s", branch, sanitize_remote(repo_url), e)
        raise FetchFailed() from e


def resolve_tip(vcs: Vcs, mirror: Path, branch: str) -> str:
    try:
        commit = vcs.rev_parse(mirror, branch).strip()
    except GitError as e:
        logger.error("Cannot resolve %s in %s: %s", branch, mirror, e)
        raise ResolveFailed() from e
    if not commit:
        logger.error("Cannot resolve %s in %s: empty output", branch, mirror)
        raise ResolveFailed()
    return commit
