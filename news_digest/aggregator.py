"""
Content aggregation cycle.

Collects every user's keywords, asks each source adapter for matching items
and stores the ones not seen before.
"""

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import List, Sequence, Set

from news_digest.models import (
    Article,
    CandidateItem,
    LookbackWindow,
    clean_keywords,
    truncate_title,
)
from news_digest.parsers.base import SourceAdapter
from news_digest.services.db import ArticleStore, DuplicateArticleError, UserStore

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Counters describing one aggregation cycle."""

    keywords: int = 0
    fetched: int = 0
    saved: int = 0
    skipped: int = 0
    failed: int = 0


class ContentAggregator:
    """Fetches new articles for all user keywords from every source."""

    def __init__(
        self,
        user_store: UserStore,
        article_store: ArticleStore,
        adapters: Sequence[SourceAdapter],
        lookback_days: int = 7,
        max_workers: int = 5,
    ):
        self.user_store = user_store
        self.article_store = article_store
        self.adapters = list(adapters)
        self.lookback_days = lookback_days
        self.max_workers = max_workers

    def collect_keywords(self) -> Set[str]:
        """Returns the union of all users' non-empty trimmed keywords."""
        keywords: Set[str] = set()
        for user in self.user_store.list_all():
            keywords.update(clean_keywords(user.get("keywords")))
        return keywords

    def save_candidate(self, item: CandidateItem, result: AggregationResult) -> bool:
        """Stores a candidate item unless it is incomplete or already known."""
        url = item.get("url")
        title = item.get("title")
        published = item.get("published_date")
        if not url or title is None or published is None:
            logger.debug("Skipping incomplete item from %s: %r", item.get("source"), title)
            result.skipped += 1
            return False

        try:
            if self.article_store.exists(url):
                logger.debug("Skipping known article: %s", url)
                result.skipped += 1
                return False

            article: Article = {
                "id": ArticleStore.get_id(url),
                "title": truncate_title(title),
                "url": url,
                "image_url": item.get("image_url"),
                "published_date": published,
                "source": item["source"],
                "sent_in_digest": False,
            }
            self.article_store.save(article)
        except DuplicateArticleError:
            # Another writer stored the same URL after our exists() check
            logger.info("Article saved concurrently, skipping: %s", url)
            result.skipped += 1
            return False
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error saving article '%s': %s", title, e)
            result.failed += 1
            return False

        logger.info("Saved new [%s] article: %s", article["source"], article["title"])
        result.saved += 1
        return True

    def fetch_content(self) -> AggregationResult:
        """Runs one aggregation cycle."""
        result = AggregationResult()
        logger.info("--- Starting aggregation (last %d days) ---", self.lookback_days)

        keywords = sorted(self.collect_keywords())
        result.keywords = len(keywords)
        if not keywords:
            logger.info("No keywords found. Skipping fetch.")
            return result
        logger.info("Found keywords: %s", keywords)

        window = LookbackWindow.days_back(self.lookback_days)

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.max_workers
        ) as executor:
            future_to_call = {
                executor.submit(adapter.fetch, keyword, window): (adapter.name, keyword)
                for keyword in keywords
                for adapter in self.adapters
            }
            for future in concurrent.futures.as_completed(future_to_call):
                source, keyword = future_to_call[future]
                try:
                    items: List[CandidateItem] = future.result()
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    logger.error("%s fetch for '%s' raised: %s", source, keyword, exc)
                    result.failed += 1
                    continue

                result.fetched += len(items)
                for item in items:
                    self.save_candidate(item, result)

        logger.info(
            "Aggregation finished: %d fetched, %d saved, %d skipped, %d failed.",
            result.fetched,
            result.saved,
            result.skipped,
            result.failed,
        )
        return result
