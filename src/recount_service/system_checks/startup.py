"""Command line entrypoint for startup checks."""

from __future__ import annotations

import argparse
import asyncio

from recount_service.config import get_settings
from recount_service.db import Store
from recount_service.logging import configure_logging, logger
from recount_service.notifications import TelegramNotifier
from recount_service.system_checks.runner import DatabaseCheck, SchemaCheck, run_checks


async def main(notify: bool) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    store = Store.from_settings(settings)
    try:
        results = await run_checks([DatabaseCheck(store), SchemaCheck(store)])
    finally:
        store.dispose()
    ok = all(result.ok for result in results)
    summary = "\n".join(
        f"{result.name}: {'OK' if result.ok else 'FAILED'} ({result.details})" for result in results
    )

    if notify:
        notifier = TelegramNotifier(settings.telegram, settings.app_name)
        try:
            await notifier.notify_startup(ok, summary)
        finally:
            await notifier.aclose()
    if ok:
        logger.info("Startup checks passed")
        return 0
    logger.error("Startup checks failed")
    return 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run stock-recount startup checks")
    parser.add_argument("--notify", action="store_true", help="Send results to Telegram")
    return parser.parse_args()


def entrypoint() -> None:
    args = parse_args()
    raise SystemExit(asyncio.run(main(args.notify)))


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
