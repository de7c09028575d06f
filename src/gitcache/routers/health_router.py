# src/gitcache/routers/health_router.py
from __future__ import annotations

import os

from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request):
    cache_dir = request.app.state.settings.cache_dir
    writable = cache_dir.is_dir() and os.access(cache_dir, os.W_OK)
    return {"status": "ok", "cache_dir_writable": writable}
