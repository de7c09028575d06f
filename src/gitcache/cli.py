# src/gitcache/cli.py
from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn
from pydantic import ValidationError

from .config import LISTEN_PROTOCOLS, Settings
from .logging_conf import build_logging_config
from .main import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-cache",
        description="Serve deterministic tar archives of git trees from a local mirror cache",
    )
    parser.add_argument("-cachedir", "--cachedir", help="Directory to use for caching. May get quite large (default ~/.gitcache)")
    parser.add_argument("-webbind", "--webbind", help="Binding for webserver, e.g. :9091 or 127.0.0.1:9091")
    parser.add_argument("-protocol", "--protocol", choices=LISTEN_PROTOCOLS, help="Listen on tcp, tcp4 or tcp6")
    parser.add_argument("--log-level", help="Log level (default info)")
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return Settings.from_env().with_overrides(
            cache_dir=args.cachedir,
            webbind=args.webbind,
            protocol=args.protocol,
            log_level=args.log_level,
        )
    except (ValidationError, ValueError) as e:
        parser.error(str(e))


def main(argv: Optional[List[str]] = None) -> None:
    settings = load_settings(argv)
    uvicorn.run(
        create_app(settings),
        host=settings.bind_host,
        port=settings.port,
        log_config=build_logging_config(settings.log_level),
    )


if __name__ == "__main__":
    main()
