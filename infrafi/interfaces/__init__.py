"""Protocol interfaces for external data sources."""
from .history_source import HistorySource

__all__ = ["HistorySource"]
