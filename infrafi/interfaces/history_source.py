"""History source protocol — indexed user history abstraction."""
from typing import Protocol

from ..models import UserHistory


class HistorySource(Protocol):
    """Abstract interface for fetching a user's indexed history."""

    async def fetch_user_history(self, address: str) -> UserHistory: ...
