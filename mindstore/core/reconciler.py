"""Library reconciliation loop for Mindstore.

Keeps a client-held list of content items converged with the server:

1. load() fetches one page and replaces (reset) or extends the held list
2. After every change to the list, polling is re-evaluated: while any item
   classifies as PENDING a PollTimer re-runs a reset load every
   `poll_interval` seconds; once nothing is pending the timer is cancelled
3. A ContentChanged event from another view triggers the same reset load

Failed fetches keep the previous list and leave polling untouched.
Overlapping reset loads resolve by issue order: a response is applied only
if no newer reset was issued after it.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from mindstore.core.classifier import is_pending, tag
from mindstore.core.content import ClassifiedItem, ContentItem
from mindstore.core.events import ContentChanged, ContentEvents
from mindstore.core.exceptions import ApiError
from mindstore.core.library_api import LibraryApi
from mindstore.core.poll_timer import PollTimer, Sleep

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_POLL_INTERVAL = 5.0

# listener(reconciler, reset)
ItemsListener = Callable[["LibraryReconciler", bool], None]


class LibraryReconciler:
    """Client-side view of one user's library.

    Attributes:
        items: Held content items, in server order.
        page: Last successfully loaded page (1-based, 0 before any load).
        has_more: Whether the last page came back full.
        last_error: Message from the most recent failed load, until dismissed.
        name: View name, used as the event source tag and in logs.
    """

    def __init__(
        self,
        api: LibraryApi,
        user_id: Optional[str],
        *,
        events: Optional[ContentEvents] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Sleep = asyncio.sleep,
        name: str = "library",
    ):
        """Initialize the reconciler.

        Args:
            api: Library API collaborator.
            user_id: Signed-in user, or None when nobody is signed in.
            events: Shared content-changed channel to subscribe to.
            page_size: Items requested per page.
            poll_interval: Seconds between refreshes while items are pending.
            sleep: Sleep implementation for the poll timer.
            name: View name used as the event source tag.
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.api = api
        self.user_id = user_id
        self.page_size = page_size
        self.name = name

        self.items: list[ContentItem] = []
        self.page = 0
        self.has_more = True
        self.last_error: Optional[str] = None

        self._in_flight = 0
        self._issued = 0
        self._latest_reset = 0
        self._disposed = False
        self._listeners: list[ItemsListener] = []
        self._converged = asyncio.Event()
        self._converged.set()

        self._timer = PollTimer(poll_interval, self._poll_tick, sleep=sleep, name=name)
        self._events = events
        self._unsubscribe = events.subscribe(self._on_content_changed) if events else None

    async def __aenter__(self) -> "LibraryReconciler":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def polling(self) -> bool:
        return self._timer.active

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending_count(self) -> int:
        return sum(1 for item in self.items if is_pending(item))

    @property
    def converged(self) -> asyncio.Event:
        """Set whenever no held item is pending."""
        return self._converged

    def classified(self) -> list[ClassifiedItem]:
        """Held items tagged with their current lifecycle state."""
        return [tag(item) for item in self.items]

    def add_listener(self, listener: ItemsListener) -> Callable[[], None]:
        """Call `listener(self, reset)` after every applied load."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def dismiss_error(self) -> None:
        self.last_error = None

    async def load(self, *, reset: bool = False, page_size: Optional[int] = None) -> bool:
        """Fetch one page and merge it into the held list.

        Args:
            reset: Load page 1 and replace the list; otherwise append the
                page after the current cursor.
            page_size: Override the configured page size for this call.

        Returns:
            True if a response was applied to the held list.
        """
        if self._disposed or not self.user_id:
            return False
        if not reset and self.loading:
            logger.debug("Skipping page load, another load is in flight")
            return False

        size = page_size or self.page_size
        page_num = 1 if reset else self.page + 1

        self._issued += 1
        generation = self._issued
        if reset:
            self._latest_reset = generation

        self._in_flight += 1
        try:
            result = await self.api.fetch_user_content(
                self.user_id,
                limit=size,
                offset=(page_num - 1) * size,
            )
        except ApiError as e:
            if self._is_stale(generation):
                logger.debug("Ignoring stale failure (request %d): %s", generation, e)
            else:
                self._report_failure(str(e) or "Failed to load content", e.status)
            return False
        finally:
            self._in_flight -= 1

        if self._is_stale(generation):
            logger.debug("Dropping stale response (request %d)", generation)
            return False
        if not result.success:
            self._report_failure(result.error or "Server reported failure", None)
            return False

        if reset:
            self.items = list(result.items)
        else:
            self.items = self.items + list(result.items)
        self.has_more = len(result.items) == size
        self.page = page_num
        self.last_error = None

        logger.debug(
            "Loaded page %d: %d items (held=%d, pending=%d)",
            page_num,
            len(result.items),
            len(self.items),
            self.pending_count,
        )
        self._reconcile_polling()
        self._notify(reset)
        return True

    async def refresh(self) -> bool:
        """Reload from page 1, replacing the held list."""
        return await self.load(reset=True)

    async def load_more(self) -> bool:
        """Append the next page if the last one came back full."""
        if not self.has_more:
            return False
        return await self.load()

    def set_user(self, user_id: Optional[str]) -> None:
        """Switch to another user (or none); clears the held list."""
        if user_id == self.user_id:
            return
        self.user_id = user_id
        self._latest_reset = self._issued + 1
        self.items = []
        self.page = 0
        self.has_more = True
        self._notify(True)
        self._reconcile_polling()

    def dispose(self) -> None:
        """Tear down: stop polling, unsubscribe, ignore late responses."""
        if self._disposed:
            return
        self._disposed = True
        self._timer.cancel()
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
        logger.debug("Disposed view %s", self.name)

    def _is_stale(self, generation: int) -> bool:
        return self._disposed or generation < self._latest_reset

    def _report_failure(self, message: str, status: Optional[int]) -> None:
        self.last_error = message
        logger.warning(
            "Failed to fetch content: %s",
            message,
            extra={"status": status, "view": self.name},
        )
        # Polling stays armed; pending items are still pending.
        self._reconcile_polling()

    def _notify(self, reset: bool) -> None:
        for listener in list(self._listeners):
            listener(self, reset)

    def _reconcile_polling(self) -> None:
        pending = self.pending_count
        if pending and self.user_id and not self._disposed:
            self._converged.clear()
            if self._timer.arm():
                logger.info(
                    "Polling armed: %d pending items",
                    pending,
                    extra={"view": self.name},
                )
            return

        self._converged.set()
        if self._timer.cancel():
            logger.info("Polling stopped: library converged", extra={"view": self.name})

    async def _poll_tick(self) -> None:
        if self.loading:
            logger.debug("Poll tick skipped, load already in flight")
            return
        await self.load(reset=True)

    async def _on_content_changed(self, event: ContentChanged) -> None:
        if event.origin is self:
            return
        logger.debug("Content changed by %s, reloading %s", event.source, self.name)
        await self.refresh()
