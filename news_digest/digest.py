"""
Daily digest run.

Matches unsent recent articles against each user's keywords, emails every user
their matches and marks as sent only the articles that reached at least one
inbox.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from news_digest.models import Article, LookbackWindow, clean_keywords
from news_digest.services.db import ArticleStore, UserStore
from news_digest.services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass
class DigestRunResult:
    """Counters describing one digest run."""

    candidates: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    articles_marked: int = 0


def matches_keywords(article: Article, keywords: Iterable[str]) -> bool:
    """True if any keyword appears in the article title, ignoring case."""
    title = (article.get("title") or "").lower()
    if not title:
        return False
    return any(keyword.lower() in title for keyword in clean_keywords(keywords))


class DigestService:
    """Builds and sends the per-user daily digests."""

    def __init__(
        self,
        user_store: UserStore,
        article_store: ArticleStore,
        email_service: EmailService,
        lookback_days: int = 7,
    ):
        self.user_store = user_store
        self.article_store = article_store
        self.email_service = email_service
        self.lookback_days = lookback_days

    def _send(self, email: str, articles: List[Article]) -> bool:
        try:
            return self.email_service.send_email(email, articles, self.lookback_days)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unexpected error sending digest to %s: %s", email, e)
            return False

    def send_daily_digest(self) -> DigestRunResult:
        """Runs one digest pass over all users."""
        result = DigestRunResult()
        logger.info("Preparing digests for the last %d days...", self.lookback_days)

        window = LookbackWindow.days_back(self.lookback_days)
        candidates = self.article_store.find_unsent_since(window.start_date)
        result.candidates = len(candidates)
        if not candidates:
            logger.info("No unsent articles since %s.", window.start_date)
            return result
        logger.info("Found %d candidate articles.", len(candidates))

        users = self.user_store.list_all()
        if not users:
            # Leave everything pending for users who register later
            logger.info("No users registered to send digests to.")
            return result

        delivered: Dict[str, Article] = {}
        for user in users:
            keywords = clean_keywords(user.get("keywords"))
            if not keywords:
                logger.info("Skipping user %s: no keywords.", user["email"])
                continue

            relevant = [a for a in candidates if matches_keywords(a, keywords)]
            if not relevant:
                logger.info("No relevant articles for user %s.", user["email"])
                continue

            if self._send(user["email"], relevant):
                result.emails_sent += 1
                for article in relevant:
                    delivered.setdefault(article["id"], article)
            else:
                result.emails_failed += 1

        if delivered:
            for article in delivered.values():
                article["sent_in_digest"] = True
            result.articles_marked = self.article_store.save_all(delivered.values())
        else:
            logger.info("No articles were delivered in any digest this run.")

        logger.info(
            "Digest run finished: %d emails sent, %d failed, %d articles marked sent.",
            result.emails_sent,
            result.emails_failed,
            result.articles_marked,
        )
        return result
