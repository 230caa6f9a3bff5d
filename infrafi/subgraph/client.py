"""GraphQL client for the protocol subgraph."""
import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import SubgraphConfig
from ..events import parse_user_history
from ..models import UserHistory

logger = logging.getLogger(__name__)

_EVENT_FIELDS = "id timestamp amount"

USER_HISTORY_QUERY = f"""
query UserHistory($user: String!, $first: Int!) {{
  userPosition(id: $user) {{
    totalSupplied
    totalBorrowed
    collateralValue
    totalSupplyInterest
    totalBorrowInterest
    firstInteractionTimestamp
  }}
  supplyEvents(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ {_EVENT_FIELDS} }}
  withdrawEvents(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ {_EVENT_FIELDS} }}
  borrowEvents(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ {_EVENT_FIELDS} }}
  repayEvents(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ {_EVENT_FIELDS} }}
  nodeDeposits(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ id timestamp assetValue }}
  nodeWithdrawals(where: {{user: $user}}, first: $first, orderBy: timestamp, orderDirection: desc) {{ id timestamp }}
}}
"""


class SubgraphError(RuntimeError):
    """Raised when the subgraph cannot be reached or answers with errors."""


class SubgraphClient:
    """Query the protocol subgraph over HTTP."""

    def __init__(self, config: SubgraphConfig) -> None:
        self.url = config.url
        self.timeout = config.timeout
        self.page_size = config.page_size

    async def query(
        self, document: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object."""
        if not self.url:
            raise SubgraphError("Subgraph URL is not configured")

        payload = {"query": document, "variables": variables or {}}
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise SubgraphError(f"HTTP {response.status} from {self.url}")
                    body = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubgraphError(f"Subgraph request failed: {e}") from e
        except ValueError as e:
            raise SubgraphError(f"Malformed response from {self.url}: {e}") from e

        if not isinstance(body, dict):
            raise SubgraphError(f"Unexpected response from {self.url}: not a JSON object")

        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err) if isinstance(err, dict) else err)
                for err in errors
            )
            raise SubgraphError(f"GraphQL error: {messages}")

        return body.get("data") or {}

    async def fetch_user_history(self, address: str) -> UserHistory:
        """Fetch a user's position and events; empty history on failure."""
        variables = {"user": address.lower(), "first": self.page_size}
        try:
            data = await self.query(USER_HISTORY_QUERY, variables)
        except SubgraphError as e:
            logger.error("Error fetching history for %s: %s", address, e)
            return UserHistory()

        history = parse_user_history(data)
        logger.info(
            "Fetched %d events for %s", len(history.events), address
        )
        return history
