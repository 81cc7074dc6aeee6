#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys

from .app import DashboardApp
from .config import Config, load_config, setup_logging
from .dispatcher import MutationDispatcher
from .extractor import Extractor, GeminiGenerator
from .preferences import PreferenceStore
from .sheet.fetcher import SheetFetcher
from .store import ReconciliationStore

logger = logging.getLogger("dsa")


def build_app(args: argparse.Namespace) -> DashboardApp:
    """Read settings once and wire the components together."""
    preferences = PreferenceStore()
    config = Config.from_preferences(preferences)
    if args.sheet_url or args.endpoint_url or args.forget_endpoint:
        config = Config(
            sheet_url=args.sheet_url or config.sheet_url,
            endpoint_url=None if args.forget_endpoint else (args.endpoint_url or config.endpoint_url),
        )
        config.save(preferences)

    app_config = load_config()
    fetcher = SheetFetcher(config)
    dispatcher = MutationDispatcher(config)
    store = ReconciliationStore(dispatcher, strict_sync=app_config.get("strict_sync", True))
    extractor = Extractor(GeminiGenerator(model=app_config.get("gemini_model")))
    logger.info("Sheet URL: %s, endpoint configured: %s", config.sheet_url, bool(config.endpoint_url))

    return DashboardApp(
        config=config,
        preferences=preferences,
        fetcher=fetcher,
        store=store,
        extractor=extractor,
        ui_config=app_config.get("ui", {}),
    )


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="DSA practice dashboard")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--sheet-url", help="Google Sheet URL to load questions from (remembered)")
    parser.add_argument("--endpoint-url", help="Webhook URL that applies updates to the sheet (remembered)")
    parser.add_argument("--forget-endpoint", action="store_true", help="Stop sending updates to the endpoint")
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    try:
        app = build_app(args)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
