"""Selection and batch delete for a library view.

Tracks which items the user has selected and deletes them in one action.
Deleted rows are never removed locally: after the batch settles the view
is reloaded from the server, which is the only source of truth for what
is left. On partial failure the selection keeps the ids that failed.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, Union

from mindstore.core.events import ContentChanged, ContentEvents
from mindstore.core.library_api import BatchDeleteResult
from mindstore.core.reconciler import LibraryReconciler

logger = logging.getLogger(__name__)

# confirm(count) -> proceed?
Confirm = Callable[[int], Union[bool, Awaitable[bool]]]


def confirmation_prompt(count: int) -> str:
    return f"Delete {count} item{'s' if count > 1 else ''}?"


class SelectionController:
    """Selected-item set plus the batch delete that consumes it.

    Attributes:
        selected: Selected content hashes, in selection order.
        deleting: True while a batch delete is running.
        last_error: Failure message from the last batch, until dismissed.
    """

    def __init__(
        self,
        reconciler: LibraryReconciler,
        *,
        events: Optional[ContentEvents] = None,
        confirm: Optional[Confirm] = None,
    ):
        """Initialize the controller.

        Args:
            reconciler: View whose items are selectable; reloaded after deletes.
            events: Channel to announce deletions on.
            confirm: Asked before deleting; None skips confirmation.
        """
        self.reconciler = reconciler
        self.events = events
        self.confirm = confirm
        self.selected: list[str] = []
        self.deleting = False
        self.last_error: Optional[str] = None
        self._remove_listener = reconciler.add_listener(self._on_items_changed)

    @property
    def count(self) -> int:
        return len(self.selected)

    def is_selected(self, content_hash: str) -> bool:
        return content_hash in self.selected

    def toggle(self, content_hash: str) -> bool:
        """Flip membership of one id.

        Returns:
            True if the id is now selected.
        """
        if content_hash in self.selected:
            self.selected.remove(content_hash)
            return False
        self.selected.append(content_hash)
        return True

    def clear(self) -> None:
        self.selected = []

    def dismiss_error(self) -> None:
        self.last_error = None

    def close(self) -> None:
        self._remove_listener()

    async def delete_selected(self) -> Optional[BatchDeleteResult]:
        """Delete every selected item, then reload the view.

        Nothing happens without a user, with an empty selection, while a
        previous batch is still running, or when confirmation is declined.

        Returns:
            The batch result, or None if nothing was attempted.
        """
        user_id = self.reconciler.user_id
        if not user_id or not self.selected or self.deleting:
            return None

        ids = list(self.selected)
        if self.confirm is not None:
            answer = self.confirm(len(ids))
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                logger.info("Batch delete of %d items cancelled", len(ids))
                return None

        self.deleting = True
        try:
            result = await self.reconciler.api.delete_multiple(ids, user_id)
            await self.reconciler.refresh()
        finally:
            self.deleting = False

        if result.ok:
            self.clear()
            self.last_error = None
        else:
            error = result.to_error()
            self.last_error = str(error)
            listed = {item.key for item in self.reconciler.items}
            self.selected = [i for i in result.failed_ids if i in listed]
            logger.error("Batch delete failed: %s", error)

        if result.deleted and self.events is not None:
            await self.events.publish(
                ContentChanged(source=self.reconciler.name, origin=self.reconciler)
            )

        return result

    def _on_items_changed(self, reconciler: LibraryReconciler, reset: bool) -> None:
        if not reset:
            return
        listed = {item.key for item in reconciler.items}
        dropped = [i for i in self.selected if i not in listed]
        if dropped:
            logger.debug("Dropping %d selections no longer listed", len(dropped))
            self.selected = [i for i in self.selected if i in listed]
