# src/gitcache/middleware/logging.py
from __future__ import annotations
import time
import logging
from fastapi import FastAPI, Request

from ..util.git_cmd import sanitize_remote

logger = logging.getLogger("gitcache.middleware")


def _describe(request: Request) -> str:
    """`repo@branch` (or `repo@commit`) for /fetch calls, from the query string."""
    params = request.query_params
    repo = params.get("repo")
    if not repo:
        return ""
    ref = params.get("commit") or params.get("branch") or "?"
    return f" [{sanitize_remote(repo)}@{ref}]"


def install_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def _log_requests(request: Request, call_next):
        start = time.perf_counter()
        what = f"{request.method} {request.url.path}{_describe(request)}"
        try:
            response = await call_next(request)
        except Exception as ex:
            duration = (time.perf_counter() - start) * 1000.0
            logger.exception("Unhandled error during %s (%.2f ms): %s", what, duration, ex)
            raise
        # streamed bodies are still being sent; this is time to first byte
        duration = (time.perf_counter() - start) * 1000.0
        logger.info("%s -> %s (%.2f ms)", what, response.status_code, duration)
        return response
