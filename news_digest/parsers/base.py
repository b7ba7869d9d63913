"""
Base classes and interfaces for source adapters.

This module defines the contract that all source adapters must follow.
"""

import datetime
from typing import List, Optional, Protocol

from news_digest.models import CandidateItem, LookbackWindow


class SourceAdapter(Protocol):
    """
    Protocol for source adapters.

    Classes implementing this protocol fetch the items one external source
    holds for a keyword and normalize them into CandidateItem records.
    Implementations never raise: a failure means no items for that call.
    """

    name: str

    def fetch(self, keyword: str, window: LookbackWindow) -> List[CandidateItem]:
        """Fetches and normalizes items for a keyword."""


def epoch_to_date(value: Optional[float]) -> Optional[datetime.date]:
    """Converts an epoch-seconds timestamp to a calendar date in the local zone."""
    if value is None:
        return None
    return datetime.datetime.fromtimestamp(int(value)).date()
