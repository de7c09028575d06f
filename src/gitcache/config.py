# src/gitcache/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, field_validator

LISTEN_PROTOCOLS = ("tcp", "tcp4", "tcp6")


class Settings(BaseModel):
    # App
    app_name: str = "Git Cache"
    service_name: str = "git-cache"
    host: str = ""
    port: int = 9091
    listen_protocol: str = "tcp4"

    # Cache / VCS
    cache_dir: Path = Path("~/.gitcache").expanduser()
    git_executable: str = "git"

    log_level: str = "info"

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_cache_dir(cls, v):
        return Path(v).expanduser()

    @field_validator("listen_protocol")
    @classmethod
    def _check_protocol(cls, v: str) -> str:
        v = v.lower()
        if v not in LISTEN_PROTOCOLS:
            raise ValueError(f"listen protocol must be one of {', '.join(LISTEN_PROTOCOLS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def _lower_level(cls, v: str) -> str:
        return v.lower()

    @property
    def bind_host(self) -> str:
        if self.host:
            return self.host
        return "0.0.0.0" if self.listen_protocol == "tcp4" else "::"

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            app_name=os.getenv("APP_NAME", "Git Cache"),
            service_name=os.getenv("SERVICE_NAME", "git-cache"),
            host=os.getenv("HOST", ""),
            port=int(os.getenv("PORT", "9091")),
            listen_protocol=os.getenv("LISTEN_PROTOCOL", "tcp4"),
            cache_dir=os.getenv("GITCACHE_DIR", "~/.gitcache"),
            git_executable=os.getenv("GIT_EXECUTABLE", "git"),
            log_level=os.getenv("LOG_LEVEL", "info"),
        )

    def with_overrides(
        self,
        *,
        cache_dir: Optional[str] = None,
        webbind: Optional[str] = None,
        protocol: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "Settings":
        """
        Return a copy with command-line values applied on top of the
        environment. `webbind` takes the "host:port" or ":port" form.
        """
        data = self.model_dump()
        if cache_dir:
            data["cache_dir"] = cache_dir
        if webbind:
            data["host"], data["port"] = parse_webbind(webbind)
        if protocol:
            data["listen_protocol"] = protocol
        if log_level:
            data["log_level"] = log_level
        return Settings(**data)


def parse_webbind(webbind: str) -> tuple[str, int]:
    """
    ":9091"          -> ("", 9091)
    "127.0.0.1:8080" -> ("127.0.0.1", 8080)
    "[::1]:8080"     -> ("::1", 8080)
    """
    host, sep, port = webbind.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid bind address: {webbind!r}")
    return host.strip("[]"), int(port)
