# src/gitcache/services/fetcher.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterator

from ..errors import BadRequest, ExportFailed, NormalizeError
from ..models import FetchRequest
from ..util.git_cmd import GitError, Vcs, sanitize_remote
from .mirror import ensure_mirror
from .normalizer import CHUNK_SIZE, normalize_tar
from .sync import resolve_tip, sync

logger = logging.getLogger(__name__)

SUPPORTED_FORMAT = "tar"


def validate_request(req: FetchRequest) -> None:
    if not req.repo:
        raise BadRequest("Must specify repo")
    if not req.branch:
        raise BadRequest("Must specify branch, even if you know the commit (we may need it to fetch)")
    if not req.format:
        raise BadRequest("Must specify format, e.g. tar")
    if req.format != SUPPORTED_FORMAT:
        raise BadRequest("Format must be tar for now")
    # these reach git as positional arguments
    for name in ("repo", "branch", "commit"):
        if getattr(req, name).startswith("-"):
            raise BadRequest(f"Invalid {name}")


def _drain(source: BinaryIO) -> None:
    # git pads the archive to a full record; let it finish writing.
    while source.read(CHUNK_SIZE):
        pass


class ArchiveFetcher:
    """
    Request pipeline behind /fetch:

      validate -> ensure mirror -> (sync + resolve tip, if no commit pinned)
               -> export -> (one forced sync + one more export, if the first
                             export failed and nothing was fetched yet)

    `open_archive` runs every step up to the first byte of output, so all
    of the failures above are reported with a proper status code. What it
    returns is the rest of the normalized tar stream; a failure while that
    is being relayed can only be logged and the body aborted.

    No locking: concurrent requests for one URL may fetch into the same
    mirror at the same time.
    """

    def __init__(self, cache_dir: Path, vcs: Vcs):
        self.cache_dir = Path(cache_dir)
        self.vcs = vcs

    def open_archive(self, req: FetchRequest) -> Iterator[bytes]:
        validate_request(req)

        mirror = ensure_mirror(self.cache_dir, req.repo, self.vcs)

        commit = req.commit
        have_fetched = False
        if not commit:
            sync(self.vcs, mirror, req.repo, req.branch)
            have_fetched = True
            commit = resolve_tip(self.vcs, mirror, req.branch)

        treeish = f"{commit}:{req.tree}"

        # Optimistic: a pinned commit is often already in the mirror.
        try:
            return self._start_export(mirror, treeish)
        except ExportFailed:
            if have_fetched:
                raise

        logger.info(
            "Export of %s failed from cached mirror, fetching %s from %s and retrying",
            treeish, req.branch, sanitize_remote(req.repo),
        )
        sync(self.vcs, mirror, req.repo, req.branch)
        return self._start_export(mirror, treeish)

    def _start_export(self, mirror: Path, treeish: str) -> Iterator[bytes]:
        stream = self._export(mirror, treeish)
        try:
            first = next(stream)
        except StopIteration:
            return iter(())
        except (NormalizeError, GitError) as e:
            logger.error("Error running archive %s in %s: %s", treeish, mirror, e)
            raise ExportFailed() from e
        return self._relay(first, stream, treeish)

    def _export(self, mirror: Path, treeish: str) -> Iterator[bytes]:
        with self.vcs.archive(mirror, treeish) as source:
            yield from normalize_tar(source)
            _drain(source)

    def _relay(self, first: bytes, stream: Iterator[bytes], treeish: str) -> Iterator[bytes]:
        yield first
        try:
            yield from stream
        except (NormalizeError, GitError) as e:
            # Headers are already on the wire; all we can do is cut the body short.
            logger.error("Error running archive %s after response started: %s", treeish, e)
            raise ExportFailed() from e
