"""Content-changed broadcast for Mindstore.

One ContentEvents instance is created per process and handed to every
controller that mutates or displays the library. Mutators publish after
their own local update; every open library view reloads on receipt.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentChanged:
    """Signal that the user's library changed.

    Attributes:
        source: Who published it ("add", "add-duplicate", a view name, ...).
            Display only; two views may share a name.
        url: The URL just saved, when there is one.
        origin: The view object that published it, if any. That view has
            already reloaded and skips the event.
    """

    source: str
    url: Optional[str] = None
    origin: Any = field(default=None, compare=False, repr=False)


Handler = Callable[[ContentChanged], Union[Awaitable[None], None]]


class ContentEvents:
    """In-process publish/subscribe channel for ContentChanged.

    Handlers may be plain functions or coroutine functions. A handler that
    raises is logged and does not stop delivery to the others.

    Example:
        events = ContentEvents()
        unsubscribe = events.subscribe(on_change)
        await events.publish(ContentChanged(source="add", url=url))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a function that removes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, event: ContentChanged) -> int:
        """Deliver an event to every current subscriber.

        Coroutine handlers run concurrently; publish returns once all of
        them settle.

        Returns:
            Number of handlers that failed.
        """
        logger.debug(
            "Publishing content change",
            extra={"source": event.source, "url": event.url},
        )
        failed = 0
        pending: list[Awaitable[None]] = []
        for handler in list(self._handlers):
            try:
                result = handler(event)
            except Exception as e:
                failed += 1
                logger.warning("Content change handler %r failed: %s", handler, e)
                continue
            if inspect.isawaitable(result):
                pending.append(result)

        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    failed += 1
                    logger.warning("Content change handler failed: %s", result)

        return failed
