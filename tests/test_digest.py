"""Unit tests for the daily digest run."""

import datetime
import unittest
from unittest.mock import MagicMock

from news_digest.digest import DigestService, matches_keywords


class InMemoryArticleStore:
    def __init__(self, articles):
        self.articles = {a["id"]: a for a in articles}
        self.save_all_calls = []

    def find_unsent_since(self, start_date):
        return [
            dict(a)
            for a in self.articles.values()
            if not a["sent_in_digest"] and a["published_date"] >= start_date
        ]

    def save_all(self, articles):
        articles = list(articles)
        self.save_all_calls.append(articles)
        for article in articles:
            self.articles[article["id"]]["sent_in_digest"] = article["sent_in_digest"]
        return len(articles)

    def sent_flag(self, article_id):
        return self.articles[article_id]["sent_in_digest"]


class InMemoryUserStore:
    def __init__(self, users):
        self.users = users
        self.list_calls = 0

    def list_all(self):
        self.list_calls += 1
        return list(self.users)


def article(article_id, title, days_ago, sent=False):
    return {
        "id": article_id,
        "title": title,
        "url": f"https://example.com/{article_id}",
        "image_url": None,
        "published_date": datetime.date.today() - datetime.timedelta(days=days_ago),
        "source": "Hacker News",
        "sent_in_digest": sent,
    }


def user(email, keywords):
    return {"email": email, "password_hash": None, "keywords": keywords}


class TestMatchesKeywords(unittest.TestCase):
    def test_case_insensitive_substring(self):
        item = article("a", "AI Breakthrough announced", 1)
        self.assertTrue(matches_keywords(item, ["ai"]))
        self.assertTrue(matches_keywords(item, ["  BREAKTHROUGH "]))
        self.assertFalse(matches_keywords(item, ["rust"]))

    def test_empty_keywords_never_match(self):
        item = article("a", "Anything", 1)
        self.assertFalse(matches_keywords(item, ["", "   "]))
        self.assertFalse(matches_keywords(item, []))

    def test_missing_title_never_matches(self):
        item = article("a", None, 1)
        self.assertFalse(matches_keywords(item, ["rust"]))


class TestDigestService(unittest.TestCase):
    def setUp(self):
        self.rust = article("rust", "Rust 2.0 released", 2)
        self.python = article("python", "Python news", 1)
        self.email_service = MagicMock()
        self.email_service.send_email.return_value = True

    def make_service(self, articles, users):
        self.article_store = InMemoryArticleStore(articles)
        self.user_store = InMemoryUserStore(users)
        return DigestService(self.user_store, self.article_store, self.email_service)

    def test_user_receives_only_matching_articles(self):
        service = self.make_service(
            [self.rust, self.python], [user("a@example.com", ["rust"])]
        )

        result = service.send_daily_digest()

        self.email_service.send_email.assert_called_once()
        recipient, sent_articles, days = self.email_service.send_email.call_args[0]
        self.assertEqual(recipient, "a@example.com")
        self.assertEqual([a["title"] for a in sent_articles], ["Rust 2.0 released"])
        self.assertEqual(days, 7)
        self.assertTrue(self.article_store.sent_flag("rust"))
        self.assertFalse(self.article_store.sent_flag("python"))
        self.assertEqual(result.emails_sent, 1)
        self.assertEqual(result.articles_marked, 1)

    def test_failed_send_marks_nothing(self):
        self.email_service.send_email.return_value = False
        service = self.make_service(
            [self.rust, self.python], [user("a@example.com", ["rust"])]
        )

        result = service.send_daily_digest()

        self.assertFalse(self.article_store.sent_flag("rust"))
        self.assertFalse(self.article_store.sent_flag("python"))
        self.assertEqual(self.article_store.save_all_calls, [])
        self.assertEqual(result.emails_failed, 1)

    def test_transport_exception_is_isolated(self):
        self.email_service.send_email.side_effect = [RuntimeError("smtp down"), True]
        service = self.make_service(
            [self.rust, self.python],
            [user("a@example.com", ["rust"]), user("b@example.com", ["python"])],
        )

        result = service.send_daily_digest()

        self.assertEqual(self.email_service.send_email.call_count, 2)
        self.assertFalse(self.article_store.sent_flag("rust"))
        self.assertTrue(self.article_store.sent_flag("python"))
        self.assertEqual(result.emails_sent, 1)
        self.assertEqual(result.emails_failed, 1)

    def test_shared_article_marked_once_if_any_send_succeeds(self):
        self.email_service.send_email.side_effect = [False, True]
        service = self.make_service(
            [self.rust],
            [user("a@example.com", ["rust"]), user("b@example.com", ["RUST"])],
        )

        result = service.send_daily_digest()

        self.assertTrue(self.article_store.sent_flag("rust"))
        self.assertEqual(len(self.article_store.save_all_calls), 1)
        self.assertEqual(len(self.article_store.save_all_calls[0]), 1)
        self.assertEqual(result.articles_marked, 1)

    def test_users_without_keywords_or_matches_are_skipped(self):
        service = self.make_service(
            [self.rust],
            [user("a@example.com", []), user("b@example.com", ["golang"])],
        )

        result = service.send_daily_digest()

        self.email_service.send_email.assert_not_called()
        self.assertFalse(self.article_store.sent_flag("rust"))
        self.assertEqual(result.emails_sent, 0)
        self.assertEqual(result.emails_failed, 0)

    def test_no_users_leaves_articles_pending(self):
        service = self.make_service([self.rust], [])

        service.send_daily_digest()

        self.email_service.send_email.assert_not_called()
        self.assertFalse(self.article_store.sent_flag("rust"))
        self.assertEqual(self.article_store.save_all_calls, [])

    def test_no_candidates_stops_early(self):
        old = article("old", "Rust 1.0 retrospective", 30)
        sent = article("sent", "Rust weekly", 1, sent=True)
        service = self.make_service([old, sent], [user("a@example.com", ["rust"])])

        result = service.send_daily_digest()

        self.assertEqual(result.candidates, 0)
        self.assertEqual(self.user_store.list_calls, 0)
        self.email_service.send_email.assert_not_called()


if __name__ == "__main__":
    unittest.main()
