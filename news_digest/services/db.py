"""
Database service for article and user persistence.

This module provides the ArticleStore and UserStore classes which interface
with Google Firestore. Articles are keyed by a hash of their URL, so the
document id doubles as the uniqueness constraint that deduplicates inserts
from concurrent fetches.
"""

import datetime
import hashlib
import logging
from typing import Any, Dict, Iterable, List, Optional

from google.api_core.exceptions import AlreadyExists  # type: ignore
from google.cloud import firestore  # type: ignore
from google.cloud.firestore_v1.base_query import FieldFilter  # type: ignore
from news_digest.models import Article, User, clean_keywords, parse_keywords

logger = logging.getLogger(__name__)

ARTICLES_COLLECTION = "articles"
USERS_COLLECTION = "users"
# Firestore batches are limited to 500 writes
BATCH_LIMIT = 400


class DuplicateArticleError(Exception):
    """Raised when an article with the same URL is already stored."""

    def __init__(self, url: str):
        super().__init__(f"Article already stored: {url}")
        self.url = url


def get_client(project_id: Optional[str]) -> firestore.Client:
    """Creates a Firestore client for the given project."""
    if not project_id:
        logger.warning("GCP_PROJECT_ID not set. Using the default project.")
    client = firestore.Client(project=project_id)
    logger.info("Connected to Firestore.")
    return client


class ArticleStore:
    """Stores fetched articles and their digest status in Firestore."""

    def __init__(self, client: Any):
        self.db = client
        self.collection = self.db.collection(ARTICLES_COLLECTION)

    @staticmethod
    def get_id(url: str) -> str:
        """Creates a deterministic hash of the URL."""
        return hashlib.md5(url.encode("utf-8")).hexdigest()

    @staticmethod
    def _to_document(article: Article) -> Dict[str, Any]:
        return {
            "title": article["title"],
            "url": article["url"],
            "image_url": article.get("image_url"),
            # Firestore has no date type; ISO strings keep range queries ordered
            "published_date": article["published_date"].isoformat(),
            "source": article["source"],
            "sent_in_digest": article.get("sent_in_digest", False),
        }

    @staticmethod
    def _from_snapshot(snapshot: Any) -> Article:
        data = snapshot.to_dict()
        return {
            "id": snapshot.id,
            "title": data["title"],
            "url": data["url"],
            "image_url": data.get("image_url"),
            "published_date": datetime.date.fromisoformat(data["published_date"]),
            "source": data.get("source", ""),
            "sent_in_digest": bool(data.get("sent_in_digest", False)),
        }

    def exists(self, url: str) -> bool:
        """Returns True if an article with this URL is already stored."""
        return self.collection.document(self.get_id(url)).get().exists

    def save(self, article: Article) -> Article:
        """
        Inserts a new article.

        Raises DuplicateArticleError when the URL is already stored, which can
        happen when two writers pass the exists() check at the same time.
        """
        doc_id = self.get_id(article["url"])
        try:
            self.collection.document(doc_id).create(self._to_document(article))
        except AlreadyExists as exc:
            raise DuplicateArticleError(article["url"]) from exc
        article["id"] = doc_id
        return article

    def find_unsent_since(self, start_date: datetime.date) -> List[Article]:
        """Returns unsent articles published on or after start_date."""
        query = self.collection.where(
            filter=FieldFilter("sent_in_digest", "==", False)
        ).where(filter=FieldFilter("published_date", ">=", start_date.isoformat()))
        return [self._from_snapshot(snap) for snap in query.stream()]

    def save_all(self, articles: Iterable[Article]) -> int:
        """Persists the digest flag of the given articles in batches."""
        batch = self.db.batch()
        count = 0
        total = 0

        for article in articles:
            ref = self.collection.document(article["id"])
            batch.update(ref, {"sent_in_digest": article["sent_in_digest"]})
            count += 1
            total += 1

            if count >= BATCH_LIMIT:
                batch.commit()
                batch = self.db.batch()
                count = 0

        if count > 0:
            batch.commit()
        logger.info("Updated digest status of %d articles.", total)
        return total


class UserStore:
    """Stores users and their keywords in Firestore, keyed by a hash of the email."""

    def __init__(self, client: Any):
        self.db = client
        self.collection = self.db.collection(USERS_COLLECTION)

    @staticmethod
    def get_id(email: str) -> str:
        """Creates a document id from the email, which may contain slashes."""
        return hashlib.md5(email.encode("utf-8")).hexdigest()

    @staticmethod
    def _from_snapshot(snapshot: Any) -> User:
        data = snapshot.to_dict() or {}
        return {
            "email": data.get("email"),
            "password_hash": data.get("password_hash"),
            "keywords": clean_keywords(data.get("keywords")),
        }

    def list_all(self) -> List[User]:
        """Returns every registered user."""
        return [self._from_snapshot(snap) for snap in self.collection.stream()]

    def find_by_email(self, email: str) -> Optional[User]:
        """Looks a user up directly by their unique email."""
        snapshot = self.collection.document(self.get_id(email)).get()
        if not snapshot.exists:
            return None
        return self._from_snapshot(snapshot)

    def save(self, user: User) -> User:
        """Creates or replaces a user record."""
        user["keywords"] = clean_keywords(user.get("keywords"))
        self.collection.document(self.get_id(user["email"])).set(
            {
                "email": user["email"],
                "password_hash": user.get("password_hash"),
                "keywords": user["keywords"],
            }
        )
        return user

    def update_keywords(self, email: str, raw_keywords: str) -> User:
        """Replaces a user's keywords from a comma separated string."""
        user = self.find_by_email(email)
        if user is None:
            logger.info("Creating user record for %s.", email)
            user = {"email": email, "password_hash": None, "keywords": []}
        user["keywords"] = sorted(parse_keywords(raw_keywords))
        self.save(user)
        logger.info("Saved %d keywords for %s.", len(user["keywords"]), email)
        return user
