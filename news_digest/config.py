"""
Configuration for the News Digest application.

Non-secret settings come from a JSON file, secrets and deployment identity
from environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, cast

logger = logging.getLogger(__name__)

DEFAULT_FEED_SITES = ("timesofindia.indiatimes.com", "medium.com")


def load_config(config_filename: str = "config.json") -> Dict[str, Any]:
    """Loads configuration from a JSON file."""
    # Relative names resolve next to this module
    base_dir = os.path.dirname(os.path.abspath(__file__))
    config_path = os.path.join(base_dir, config_filename)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Using defaults.", config_path)
        return {}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the aggregation and digest jobs."""

    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 30
    http_timeout: float = 10
    lookback_days: int = 7
    max_workers: int = 5
    aggregation_initial_delay_seconds: int = 5
    aggregation_interval_minutes: int = 60
    digest_hour: int = 8
    digest_minute: int = 0
    feed_sites: Tuple[str, ...] = DEFAULT_FEED_SITES
    email_user: Optional[str] = None
    email_password: Optional[str] = field(default=None, repr=False)
    digest_from: Optional[str] = None
    newsapi_key: Optional[str] = field(default=None, repr=False)
    gcp_project_id: Optional[str] = None
    reddit_user_agent: Optional[str] = None


def load_settings(config_filename: Optional[str] = None) -> Settings:
    """Builds Settings from the JSON config file and the environment."""
    config = load_config(
        config_filename or os.environ.get("NEWS_DIGEST_CONFIG", "config.json")
    )
    aggregation = cast(Dict[str, Any], config.get("aggregation", {}))
    digest = cast(Dict[str, Any], config.get("digest", {}))
    feed_sites = cast(List[str], config.get("feed_sites", list(DEFAULT_FEED_SITES)))

    email_user = os.environ.get("EMAIL_USER")
    return Settings(
        smtp_server=cast(str, config.get("smtp_server", "smtp.gmail.com")),
        smtp_port=int(config.get("smtp_port", 587)),
        smtp_timeout=float(config.get("smtp_timeout", 30)),
        http_timeout=float(config.get("http_timeout", 10)),
        lookback_days=int(config.get("lookback_days", 7)),
        max_workers=int(config.get("max_workers", 5)),
        aggregation_initial_delay_seconds=int(
            aggregation.get("initial_delay_seconds", 5)
        ),
        aggregation_interval_minutes=int(aggregation.get("interval_minutes", 60)),
        digest_hour=int(digest.get("hour", 8)),
        digest_minute=int(digest.get("minute", 0)),
        feed_sites=tuple(feed_sites),
        email_user=email_user,
        email_password=os.environ.get("EMAIL_PASS"),
        digest_from=os.environ.get("DIGEST_FROM", email_user),
        newsapi_key=os.environ.get("NEWSAPI_KEY"),
        gcp_project_id=os.environ.get("GCP_PROJECT_ID"),
        reddit_user_agent=os.environ.get("REDDIT_USER_AGENT"),
    )
