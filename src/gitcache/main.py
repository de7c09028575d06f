# src/gitcache/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .config import Settings
from .logging_conf import setup_logging
from .middleware import install_request_logging, add_error_handlers
from .routers import fetch_router, health_router
from .services.fetcher import ArchiveFetcher
from .util.git_cmd import GitCli, Vcs
from .util.netinfo import advertised_urls

logger = logging.getLogger("gitcache")


def create_app(settings: Optional[Settings] = None, vcs: Optional[Vcs] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    vcs = vcs or GitCli(settings.git_executable)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        settings.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Starting %s, cache at %s", settings.app_name, settings.cache_dir)

        try:
            for url in advertised_urls(settings.port):
                logger.info("(optional) export GITCACHE=%s", url)
        except OSError as e:
            logger.warning("Cannot list network interfaces: %s", e)

        logger.info("Serving on %s:%s (%s)", settings.bind_host, settings.port, settings.listen_protocol)
        yield
        logger.info("Shutdown complete")

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.fetcher = ArchiveFetcher(settings.cache_dir, vcs)

    # Middlewares
    install_request_logging(app)
    add_error_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(fetch_router)

    @app.get("/")
    async def root():
        return {
            "service": settings.service_name,
            "name": settings.app_name,
            "status": "ok",
            "endpoints": ["/fetch", "/health"],
        }

    return app
