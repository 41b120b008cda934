#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console

from .config import FeedSettings, load_config, setup_logging
from .datamodels import CalendarContent, PageContent, record_as_dict
from .errors import ConfigError
from .fetcher import UPCOMING, Fetcher

logger = logging.getLogger("lilian")

DUMP_CHOICES = ("page", "calendar", "upcoming", "published")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Programa Lilian content viewer")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--api-url", type=str, help="Base URL of the content backend")
    parser.add_argument("--theme", type=str, help="Textual theme for this run")
    parser.add_argument(
        "--max-upcoming", type=int, help="Maximum number of records in the upcoming feed"
    )
    parser.add_argument(
        "--lookback-days",
        type=int,
        help="Also show upcoming records dated up to this many days ago",
    )
    parser.add_argument(
        "--dump",
        choices=DUMP_CHOICES,
        help="Print aggregated content as JSON and exit instead of starting the UI",
    )
    return parser


def settings_from_args(config: Dict[str, Any], args: argparse.Namespace) -> FeedSettings:
    merged = dict(config)
    if args.api_url:
        merged["api_base_url"] = args.api_url
    if args.max_upcoming is not None:
        merged["max_upcoming"] = args.max_upcoming
    if args.lookback_days is not None:
        merged["lookback_days"] = args.lookback_days
    return FeedSettings.from_config(merged)


def _section_payload(content) -> Dict[str, Any]:
    return {
        "source": content.source,
        "error": content.error,
        "records": [record_as_dict(r) for r in content.records],
    }


def _calendar_payload(calendar: CalendarContent) -> Dict[str, Any]:
    return {
        "source": calendar.source,
        "error": calendar.error,
        "days": {
            key: [record_as_dict(r) for r in records]
            for key, records in calendar.index.items()
        },
    }


def dump(fetcher: Fetcher, what: str) -> Dict[str, Any]:
    if what == "calendar":
        return _calendar_payload(fetcher.load_calendar())
    if what == "upcoming":
        return _section_payload(fetcher.load_category(UPCOMING))
    if what == "published":
        return _section_payload(fetcher.load_published())
    page: PageContent = fetcher.load_page()
    payload = {name: _section_payload(content) for name, content in page.items()}
    payload["calendar"] = _calendar_payload(fetcher.build_calendar(page))
    return payload


# --- Entrypoint ---
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    try:
        settings = settings_from_args(config, args)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    fetcher = Fetcher(settings)

    if args.dump:
        Console().print_json(json.dumps(dump(fetcher, args.dump), ensure_ascii=False))
        return 0

    # imported here so --dump works without a terminal UI
    from .app import LilianApp

    theme_name = args.theme or config.get("theme")
    logger.info("Using theme: %s", theme_name)

    try:
        app = LilianApp(fetcher=fetcher, settings=settings, theme=theme_name, config=config)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
