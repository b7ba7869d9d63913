"""
News Digest
This script fetches articles for every user's keywords from several sources,
stores new ones in Firestore, and emails each user a daily digest of matches.
"""

import argparse
import logging
import sys
import time
from datetime import datetime, timedelta
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore

from news_digest.aggregator import ContentAggregator
from news_digest.config import Settings, load_settings
from news_digest.digest import DigestService
from news_digest.parsers.base import SourceAdapter
from news_digest.parsers.hackernews import HackerNewsAdapter
from news_digest.parsers.newsapi import NewsAPIAdapter
from news_digest.parsers.reddit import DEFAULT_USER_AGENT, RedditAdapter
from news_digest.parsers.rss import GoogleNewsRSSAdapter
from news_digest.services.db import ArticleStore, UserStore, get_client
from news_digest.services.email_service import EmailService

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configures root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_adapters(settings: Settings) -> List[SourceAdapter]:
    """Creates one adapter per configured source."""
    adapters: List[SourceAdapter] = [
        HackerNewsAdapter(timeout=settings.http_timeout),
        NewsAPIAdapter(settings.newsapi_key, timeout=settings.http_timeout),
        RedditAdapter(
            timeout=settings.http_timeout,
            user_agent=settings.reddit_user_agent or DEFAULT_USER_AGENT,
        ),
    ]
    for site in settings.feed_sites:
        adapters.append(GoogleNewsRSSAdapter(site, timeout=settings.http_timeout))
    return adapters


def run_aggregation(aggregator: ContentAggregator) -> None:
    """Scheduled entry point for the aggregation cycle."""
    try:
        aggregator.fetch_content()
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Aggregation cycle failed.")


def run_digest(digest_service: DigestService) -> None:
    """Scheduled entry point for the daily digest."""
    try:
        digest_service.send_daily_digest()
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Digest run failed.")


def create_scheduler(
    settings: Settings, aggregator: ContentAggregator, digest_service: DigestService
) -> BackgroundScheduler:
    """Registers the aggregation and digest jobs on a background scheduler."""
    # One instance per job: overlapping runs are merged instead of stacked
    scheduler = BackgroundScheduler(
        job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 300}
    )
    scheduler.add_job(
        run_aggregation,
        trigger=IntervalTrigger(minutes=settings.aggregation_interval_minutes),
        args=[aggregator],
        id="aggregation",
        name="Fetch content",
        next_run_time=datetime.now()
        + timedelta(seconds=settings.aggregation_initial_delay_seconds),
        replace_existing=True,
    )
    scheduler.add_job(
        run_digest,
        trigger=CronTrigger(hour=settings.digest_hour, minute=settings.digest_minute),
        args=[digest_service],
        id="digest",
        name="Send daily digest",
        replace_existing=True,
    )
    return scheduler


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the command line; reads sys.argv when argv is None."""
    parser = argparse.ArgumentParser(
        description="Aggregate keyword news and send daily digests"
    )
    parser.add_argument(
        "--once",
        choices=["aggregate", "digest"],
        help="Run a single cycle and exit instead of scheduling",
    )
    parser.add_argument(
        "--set-keywords",
        nargs=2,
        metavar=("EMAIL", "KEYWORDS"),
        help="Replace a user's keywords with a comma separated list",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution entry point."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)
    settings = load_settings()

    client = get_client(settings.gcp_project_id)
    user_store = UserStore(client)
    article_store = ArticleStore(client)

    if args.set_keywords:
        email, raw_keywords = args.set_keywords
        user_store.update_keywords(email, raw_keywords)
        return 0

    aggregator = ContentAggregator(
        user_store,
        article_store,
        build_adapters(settings),
        lookback_days=settings.lookback_days,
        max_workers=settings.max_workers,
    )
    if args.once == "aggregate":
        aggregator.fetch_content()
        return 0

    if not settings.email_user or not settings.email_password:
        logger.error("Error: EMAIL_USER or EMAIL_PASS not set.")
        return 1

    email_service = EmailService(
        settings.smtp_server,
        settings.smtp_port,
        settings.email_user,
        settings.email_password,
        from_address=settings.digest_from,
        timeout=settings.smtp_timeout,
    )
    digest_service = DigestService(
        user_store, article_store, email_service, lookback_days=settings.lookback_days
    )

    if args.once == "digest":
        digest_service.send_daily_digest()
        return 0

    scheduler = create_scheduler(settings, aggregator, digest_service)
    scheduler.start()
    logger.info("Scheduler started with %d jobs.", len(scheduler.get_jobs()))
    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down scheduler...")
        scheduler.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
