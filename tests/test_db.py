"""Unit tests for the Firestore-backed stores."""

import datetime
import unittest
from unittest.mock import MagicMock, patch

from google.api_core.exceptions import AlreadyExists

from news_digest.services.db import (
    ArticleStore,
    DuplicateArticleError,
    UserStore,
    get_client,
)


def make_article(url="https://example.com/a", **overrides):
    article = {
        "id": ArticleStore.get_id(url),
        "title": "Rust 2.0 released",
        "url": url,
        "image_url": None,
        "published_date": datetime.date(2026, 10, 16),
        "source": "Hacker News",
        "sent_in_digest": False,
    }
    article.update(overrides)
    return article


def make_snapshot(doc_id, data, exists=True):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


class TestArticleStore(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.collection = self.client.collection.return_value
        self.store = ArticleStore(self.client)

    def test_uses_articles_collection(self):
        self.client.collection.assert_called_with("articles")

    def test_get_id_is_deterministic(self):
        url = "http://example.com/article"
        self.assertEqual(ArticleStore.get_id(url), ArticleStore.get_id(url))
        self.assertEqual(len(ArticleStore.get_id(url)), 32)  # MD5 is 32 hex chars
        self.assertNotEqual(ArticleStore.get_id(url), ArticleStore.get_id(url + "/2"))

    def test_exists(self):
        self.collection.document.return_value.get.return_value.exists = True
        self.assertTrue(self.store.exists("https://example.com/a"))
        self.collection.document.assert_called_with(
            ArticleStore.get_id("https://example.com/a")
        )

    def test_save_creates_document(self):
        article = make_article()
        saved = self.store.save(article)

        doc = self.collection.document.return_value
        doc.create.assert_called_once()
        data = doc.create.call_args[0][0]
        self.assertEqual(data["published_date"], "2026-10-16")
        self.assertFalse(data["sent_in_digest"])
        self.assertEqual(saved["id"], ArticleStore.get_id(article["url"]))

    def test_save_duplicate_raises(self):
        self.collection.document.return_value.create.side_effect = AlreadyExists("dup")
        with self.assertRaises(DuplicateArticleError) as ctx:
            self.store.save(make_article())
        self.assertEqual(ctx.exception.url, "https://example.com/a")

    def test_find_unsent_since(self):
        query = self.collection.where.return_value.where.return_value
        query.stream.return_value = [
            make_snapshot(
                "abc",
                {
                    "title": "Rust 2.0 released",
                    "url": "https://example.com/a",
                    "image_url": None,
                    "published_date": "2026-10-16",
                    "source": "Hacker News",
                    "sent_in_digest": False,
                },
            )
        ]

        articles = self.store.find_unsent_since(datetime.date(2026, 10, 11))

        self.assertEqual(len(articles), 1)
        self.assertEqual(articles[0]["id"], "abc")
        self.assertEqual(articles[0]["published_date"], datetime.date(2026, 10, 16))
        self.assertFalse(articles[0]["sent_in_digest"])

    def test_save_all_batches_updates(self):
        batches = [MagicMock(), MagicMock()]
        self.client.batch.side_effect = batches
        articles = [
            make_article(f"https://example.com/{i}", sent_in_digest=True)
            for i in range(401)
        ]

        total = self.store.save_all(articles)

        self.assertEqual(total, 401)
        self.assertEqual(batches[0].update.call_count, 400)
        self.assertEqual(batches[1].update.call_count, 1)
        batches[0].commit.assert_called_once()
        batches[1].commit.assert_called_once()
        _, fields = batches[1].update.call_args[0]
        self.assertEqual(fields, {"sent_in_digest": True})

    def test_save_all_empty_commits_nothing(self):
        batch = self.client.batch.return_value
        self.assertEqual(self.store.save_all([]), 0)
        batch.commit.assert_not_called()


class TestUserStore(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.collection = self.client.collection.return_value
        self.store = UserStore(self.client)

    def test_list_all_cleans_keywords(self):
        self.collection.stream.return_value = [
            make_snapshot(
                "a@example.com",
                {"email": "a@example.com", "keywords": [" rust ", "", "AI", None]},
            )
        ]

        users = self.store.list_all()

        self.assertEqual(users[0]["email"], "a@example.com")
        self.assertEqual(users[0]["keywords"], ["rust", "AI"])

    def test_find_by_email_looks_up_document(self):
        self.collection.document.return_value.get.return_value = make_snapshot(
            UserStore.get_id("a@example.com"), None, exists=False
        )
        self.assertIsNone(self.store.find_by_email("a@example.com"))
        self.collection.document.assert_called_with(UserStore.get_id("a@example.com"))

    def test_email_with_slash_is_hashed_into_document_id(self):
        doc = self.collection.document.return_value
        doc.get.return_value = make_snapshot("ignored", None, exists=False)

        user = self.store.update_keywords("team/news@example.com", "rust")

        self.assertEqual(user["email"], "team/news@example.com")
        for call in self.collection.document.call_args_list:
            doc_id = call[0][0]
            self.assertNotIn("/", doc_id)
            self.assertEqual(doc_id, UserStore.get_id("team/news@example.com"))
        self.assertEqual(doc.set.call_args[0][0]["email"], "team/news@example.com")

    def test_update_keywords_creates_missing_user(self):
        doc = self.collection.document.return_value
        doc.get.return_value = make_snapshot("b@example.com", None, exists=False)

        user = self.store.update_keywords("b@example.com", " rust, ai ,, rust ")

        self.assertEqual(user["keywords"], ["ai", "rust"])
        doc.set.assert_called_once_with(
            {"email": "b@example.com", "password_hash": None, "keywords": ["ai", "rust"]}
        )

    def test_update_keywords_keeps_password_hash(self):
        doc = self.collection.document.return_value
        doc.get.return_value = make_snapshot(
            "c@example.com",
            {"email": "c@example.com", "password_hash": "hash", "keywords": ["old"]},
        )

        user = self.store.update_keywords("c@example.com", "new")

        self.assertEqual(user["keywords"], ["new"])
        self.assertEqual(doc.set.call_args[0][0]["password_hash"], "hash")


class TestGetClient(unittest.TestCase):
    @patch("news_digest.services.db.firestore.Client")
    def test_get_client_passes_project(self, mock_client):
        client = get_client("test-project")
        mock_client.assert_called_once_with(project="test-project")
        self.assertIs(client, mock_client.return_value)


if __name__ == "__main__":
    unittest.main()
