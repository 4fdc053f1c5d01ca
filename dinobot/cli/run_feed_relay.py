#!/usr/bin/env python3
"""
CLI to run the feed relay job.

Usage:
    python -m dinobot.cli.run_feed_relay
    python -m dinobot.cli.run_feed_relay --loop-seconds 300

Examples:
    # One pass (e.g. from cron every five minutes)
    python -m dinobot.cli.run_feed_relay

    # Keep running, one pass every five minutes
    python -m dinobot.cli.run_feed_relay --loop-seconds 300

Exit codes:
    0  pass completed (individual registrations may still have failed)
    1  feed authorization failed
    2  configuration error
"""
import asyncio
import argparse
import logging
import sys

import httpx

from dinobot.clients.groupme_client import GroupMeClient
from dinobot.clients.twitter_client import FeedAuthorizationError, TwitterSearchClient
from dinobot.config import settings
from dinobot.core.log_filters import configure_logging
from dinobot.db import connection
from dinobot.repositories.registration_repository import RegistrationRepository
from dinobot.services.feed_relay import FeedRelay

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_AUTH_FAILED = 1
EXIT_CONFIG_ERROR = 2


async def run_once(app_key: str, app_secret: str) -> int:
    """Run a single relay pass; returns the number of items posted"""
    async with httpx.AsyncClient() as http_client:
        async with connection.session_scope() as session:
            relay = FeedRelay(
                repository=RegistrationRepository(session),
                feed_client=TwitterSearchClient(http_client, settings),
                poster=GroupMeClient(http_client, settings),
                app_key=app_key,
                app_secret=app_secret,
            )
            report = await relay.run()
    return report.posted


async def main(loop_seconds: int = 0) -> int:
    try:
        app_key, app_secret = settings.twitter_credentials()
    except ValueError as e:
        print(f"❌ Error: {e}")
        return EXIT_CONFIG_ERROR

    await connection.init_db()
    try:
        while True:
            try:
                posted = await run_once(app_key, app_secret)
            except FeedAuthorizationError as e:
                logger.error(f"❌ Feed authorization failed: {e}")
                print(f"❌ Feed authorization failed: {e}")
                return EXIT_AUTH_FAILED

            print(f"✅ Relay pass complete: {posted} item(s) posted")
            if loop_seconds <= 0:
                return EXIT_OK

            logger.info(f"Sleeping {loop_seconds}s until next pass")
            await asyncio.sleep(loop_seconds)
    finally:
        await connection.close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Relay new feed search results into registered groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "--loop-seconds",
        type=int,
        default=0,
        help="Repeat the pass every N seconds (default: run once)"
    )

    args = parser.parse_args()

    configure_logging(settings.log_level)

    sys.exit(asyncio.run(main(loop_seconds=args.loop_seconds)))
