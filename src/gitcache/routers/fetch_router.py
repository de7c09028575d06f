# src/gitcache/routers/fetch_router.py
from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..models import FetchRequest
from ..services.fetcher import ArchiveFetcher

router = APIRouter(tags=["fetch"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _form_values(request: Request) -> Dict[str, str]:
    """Query string first, then a form-encoded POST body on top of it."""
    values = dict(request.query_params)
    if request.method == "POST":
        ctype = request.headers.get("content-type", "")
        if ctype.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            values.update({k: v for k, v in form.items() if isinstance(v, str)})
    return values


@router.api_route("/fetch", methods=["GET", "POST"])
async def fetch_archive(request: Request):
    values = await _form_values(request)
    req = FetchRequest(**{name: values.get(name, "") for name in FetchRequest.model_fields})

    fetcher: ArchiveFetcher = request.app.state.fetcher
    # git and the tar rewrite block; keep them off the event loop.
    body = await run_in_threadpool(fetcher.open_archive, req)
    return StreamingResponse(body, media_type="application/x-tar")
