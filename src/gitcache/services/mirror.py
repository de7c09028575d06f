# src/gitcache/services/mirror.py
from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from ..errors import MirrorError
from ..util.git_cmd import GitError, Vcs, sanitize_remote

logger = logging.getLogger(__name__)


def mirror_path_for(cache_root: Path, repo_url: str) -> Path:
    """
    One directory per distinct URL string: the hex SHA-256 of the URL.
    URLs that name the same remote but differ textually get separate mirrors.
    """
    digest = hashlib.sha256(repo_url.encode("utf-8")).hexdigest()
    return Path(cache_root) / digest


def ensure_mirror(cache_root: Path, repo_url: str, vcs: Vcs) -> Path:
    """
    Return the mirror directory for `repo_url`, creating and `git init --bare`-ing
    it on first use. An existing directory is trusted as-is; nothing but this
    service writes under the cache root.
    """
    gd = mirror_path_for(cache_root, repo_url)
    if gd.exists():
        return gd

    logger.info("Creating mirror for %s at %s", sanitize_remote(repo_url), gd)
    try:
        gd.mkdir(parents=True, exist_ok=True)
        vcs.init_bare(gd)
    except (OSError, GitError) as e:
        logger.error("Error creating git dir %s: %s", gd, e)
        raise MirrorError() from e
    return gd
