"""Shared test fixtures for Mindstore.

Provides item builders, a manual clock for the poll timer, and mock
collaborators so tests never touch a real content API.
"""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mindstore.core.content import ContentItem
from mindstore.core.library_api import ContentPage, LibraryApi
from mindstore.core.reconciler import LibraryReconciler


def make_item(content_hash: str = "hash-1", **media: Any) -> ContentItem:
    """Build a ContentItem from camelCase media fields.

    Example:
        make_item("abc", downloadStatus="completed", title="Hello")
    """
    return ContentItem.from_dict({"contentHash": content_hash, "media": media})


def pending_item(content_hash: str = "pending-1") -> ContentItem:
    return make_item(content_hash, downloadStatus="processing", platform="instagram")


def completed_item(content_hash: str = "done-1", **media: Any) -> ContentItem:
    fields = {
        "downloadStatus": "completed",
        "platform": "youtube",
        "title": f"Title {content_hash}",
        "thumbnailUrl": "https://img.example/thumb.jpg",
    }
    fields.update(media)
    return make_item(content_hash, **fields)


def page_of(*items: ContentItem, total: int | None = None) -> ContentPage:
    return ContentPage(success=True, items=list(items), total=total)


async def settle(rounds: int = 20) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Manual clock; pass `clock.sleep` wherever asyncio.sleep is injectable.

    Sleepers only wake when the test calls advance().
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, future))
        await future

    @property
    def sleepers(self) -> int:
        return sum(1 for _, future in self._sleepers if not future.done())

    async def advance(self, seconds: float) -> None:
        await settle()
        self.now += seconds
        due = [future for deadline, future in self._sleepers if deadline <= self.now]
        self._sleepers = [(d, f) for d, f in self._sleepers if d > self.now]
        for future in due:
            if not future.done():
                future.set_result(None)
        await settle()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_api() -> MagicMock:
    """LibraryApi double; set fetch_user_content.side_effect per test."""
    api = MagicMock(spec=LibraryApi)
    api.fetch_user_content = AsyncMock(return_value=page_of())
    api.save_url = AsyncMock(return_value={"success": True})
    api.delete_multiple = AsyncMock()
    return api


@pytest.fixture
def mock_client() -> MagicMock:
    """ApiClient double for exercising the real LibraryApi."""
    client = MagicMock()
    client.get = AsyncMock(return_value={"success": True, "items": [], "total": 0})
    client.post = AsyncMock(return_value={"success": True})
    client.delete = AsyncMock(return_value={"success": True})
    return client


@pytest_asyncio.fixture
async def make_reconciler(mock_api, clock):
    """Factory for reconcilers on the fake clock; disposes them on teardown."""
    created = []

    def factory(user_id="u1", **kwargs):
        kwargs.setdefault("page_size", 10)
        kwargs.setdefault("poll_interval", 5)
        kwargs.setdefault("sleep", clock.sleep)
        reconciler = LibraryReconciler(mock_api, user_id, **kwargs)
        created.append(reconciler)
        return reconciler

    yield factory
    for reconciler in created:
        reconciler.dispose()
    await settle()
