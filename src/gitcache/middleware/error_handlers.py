# src/gitcache/middleware/error_handlers.py
from __future__ import annotations
import logging
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from ..errors import GitCacheError

logger = logging.getLogger("gitcache.errors")


def add_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GitCacheError)
    async def git_cache_error_handler(request: Request, exc: GitCacheError):
        # Details were logged where the error was raised; the caller gets the short text only.
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def generic_exception_handler(_, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return PlainTextResponse("Internal Server Error", status_code=500)
