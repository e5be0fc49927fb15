"""Library endpoints of the content API.

Thin wrappers around ApiClient for listing, saving and deleting a user's
saved links.

Endpoints:
    GET    /urls?userId=&limit=&offset=   -> {success, items[], total}
    POST   /urls {url, userId}             -> {success, platform, contentHash, ...}
    DELETE /urls/{contentHash} {userId}    -> {success}
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from mindstore.core.content import ContentItem
from mindstore.core.exceptions import ApiError, BatchDeleteError
from mindstore.core.http_client import ApiClient
from mindstore.core.logger import get_item_logger

logger = logging.getLogger(__name__)


@dataclass
class ContentPage:
    """One page of a user's library.

    Attributes:
        success: Server-reported success flag.
        items: Parsed items, in server order.
        total: Total items in the library, when reported.
        error: Server error text when success is False.
    """

    success: bool
    items: list[ContentItem] = field(default_factory=list)
    total: int | None = None
    error: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ContentPage":
        raw_items = data.get("items") or []
        total = data.get("total")
        return cls(
            success=bool(data.get("success")),
            items=[ContentItem.from_dict(i) for i in raw_items if isinstance(i, dict)],
            total=total if isinstance(total, int) else None,
            error=data.get("error"),
        )


@dataclass
class BatchDeleteResult:
    """Outcome of deleting several items concurrently.

    Attributes:
        deleted: Hashes the server confirmed deleted.
        failures: Hash -> error for every delete that failed.
    """

    deleted: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_ids(self) -> list[str]:
        return list(self.failures)

    def to_error(self) -> BatchDeleteError | None:
        """BatchDeleteError describing the failures, or None on full success."""
        if self.ok:
            return None
        return BatchDeleteError(self.failures, len(self.deleted) + len(self.failures))


class LibraryApi:
    """Library operations for a single content API.

    Attributes:
        client: ApiClient used for transport.
    """

    def __init__(self, client: ApiClient):
        self.client = client

    async def fetch_user_content(
        self,
        user_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> ContentPage:
        """Fetch one page of the user's saved content.

        Raises:
            ApiError: On transport or server failure.
        """
        data = await self.client.get(
            "/urls",
            params={"userId": user_id, "limit": limit, "offset": offset},
        )
        return ContentPage.from_response(data)

    async def save_url(self, url: str, user_id: str) -> dict[str, Any]:
        """Save a new URL to the user's library.

        Raises:
            ApiError: status 409 when the URL is already saved.
        """
        return await self.client.post("/urls", {"url": url, "userId": user_id})

    async def delete_url(self, content_hash: str, user_id: str) -> dict[str, Any]:
        """Delete one saved item.

        A response with success=False is raised as ApiError so batch
        callers see it as a failure.
        """
        data = await self.client.delete(
            f"/urls/{quote(content_hash, safe='')}", {"userId": user_id}
        )
        if data.get("success") is False:
            raise ApiError(data.get("error") or "Delete was not acknowledged", 200, data)
        return data

    async def delete_multiple(
        self,
        content_hashes: list[str],
        user_id: str,
    ) -> BatchDeleteResult:
        """Delete several items concurrently and wait for all of them.

        Never raises for individual failures; they are collected in the
        result instead.
        """
        results = await asyncio.gather(
            *(self.delete_url(h, user_id) for h in content_hashes),
            return_exceptions=True,
        )

        outcome = BatchDeleteResult()
        for content_hash, result in zip(content_hashes, results):
            if isinstance(result, Exception):
                get_item_logger(__name__, content_hash).warning("Delete failed: %s", result)
                outcome.failures[content_hash] = result
            else:
                outcome.deleted.append(content_hash)

        logger.info(
            "Batch delete finished: deleted=%d, failed=%d",
            len(outcome.deleted),
            len(outcome.failures),
        )
        return outcome
