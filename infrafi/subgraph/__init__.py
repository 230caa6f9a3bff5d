"""Subgraph (GraphQL indexer) access."""
from .client import SubgraphClient, SubgraphError

__all__ = ["SubgraphClient", "SubgraphError"]
