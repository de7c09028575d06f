# src/gitcache/errors.py
from __future__ import annotations


class GitCacheError(Exception):
    """
    Base for every failure the /fetch endpoint reports to the caller.

    `message` is the short text sent in the response body. It never
    carries upstream error output: repository URLs may embed
    credentials and the underlying git error may name local paths.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(GitCacheError):
    status_code = 400


class MirrorError(GitCacheError):
    status_code = 500

    def __init__(self, message: str = "Cannot create git dir"):
        super().__init__(message)


class UpstreamError(GitCacheError):
    status_code = 502


class FetchFailed(UpstreamError):
    def __init__(self, message: str = "Error fetching from repo"):
        super().__init__(message)


class ResolveFailed(UpstreamError):
    def __init__(self, message: str = "Error fetching latest commit from repo"):
        super().__init__(message)


class ExportFailed(UpstreamError):
    def __init__(self, message: str = "Error running archive"):
        super().__init__(message)


class NormalizeError(Exception):
    """Raised by the tar rewriter; the fetcher turns it into ExportFailed."""
