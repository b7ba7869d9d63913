"""
Data models for the News Digest application.
"""

import datetime
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, TypedDict

# Titles longer than this are cut before they are stored.
TITLE_MAX_LENGTH = 999


class CandidateItem(TypedDict):
    """Normalized item returned by a source adapter, before persistence."""

    title: Optional[str]
    url: Optional[str]
    image_url: Optional[str]
    published_date: Optional[datetime.date]
    source: str


class Article(TypedDict):
    """Type definition for a stored article."""

    id: str
    title: str
    url: str
    image_url: Optional[str]
    published_date: datetime.date
    source: str
    sent_in_digest: bool


class User(TypedDict):
    """Type definition for a registered user."""

    email: str
    password_hash: Optional[str]
    keywords: List[str]


@dataclass(frozen=True)
class LookbackWindow:
    """Rolling lower bound shared by the fetchers and the digest query."""

    start_date: datetime.date
    start_timestamp: int

    @classmethod
    def days_back(
        cls, days: int, today: Optional[datetime.date] = None
    ) -> "LookbackWindow":
        """Builds the window starting at local midnight ``days`` before today."""
        today = today or datetime.date.today()
        start = today - datetime.timedelta(days=days)
        # Local midnight, expressed in seconds since epoch
        midnight = datetime.datetime.combine(start, datetime.time.min)
        return cls(start_date=start, start_timestamp=int(midnight.timestamp()))


def parse_keywords(raw: str) -> Set[str]:
    """Splits a comma separated keyword string into a set of trimmed keywords."""
    return {part.strip() for part in raw.split(",") if part.strip()}


def clean_keywords(keywords: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Returns the non-empty trimmed keywords, preserving order."""
    cleaned: List[str] = []
    for keyword in keywords or []:
        if keyword is None:
            continue
        trimmed = keyword.strip()
        if trimmed and trimmed not in cleaned:
            cleaned.append(trimmed)
    return cleaned


def truncate_title(title: str) -> str:
    """Cuts a title down to the stored maximum length."""
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_MAX_LENGTH]
    return title
