# src/gitcache/models.py
from __future__ import annotations

from pydantic import BaseModel, Field


class FetchRequest(BaseModel):
    repo: str = Field(default="", description="Upstream repository URL; also the cache key")
    branch: str = Field(default="", description="Branch to fetch, required even when commit is pinned")
    commit: str = Field(default="", description="Pinned commit; empty means the branch tip")
    tree: str = Field(default="", description="Subtree path within the commit; empty means the root")
    format: str = Field(default="", description="Archive format, only 'tar' is supported")