"""Lifecycle classifier for Mindstore.

This module maps a content item's media record onto a LifecycleState
(PENDING, FAILED, COMPLETED).

The server writes `downloadStatus` and the metadata fields independently,
so a status can arrive before the metadata it describes. Metadata presence
is used as a second signal: a failure reported before any metadata landed
is still PENDING (soft-pending), which keeps cards from flashing a failure
while the real result is on its way.
"""

from typing import Union

from mindstore.core.content import ClassifiedItem, ContentItem, LifecycleState, Media

PENDING_STATUSES = frozenset(
    {
        "pending",
        "processing",
        "queued",
        "waiting",
        "created",
        "uploading",
        "init",
        "drive-uploading",
        "drive_upload",
        "drive_pending",
    }
)

FAILURE_STATUSES = frozenset({"failed", "error"})

COMPLETION_STATUSES = frozenset({"completed", "uploaded"})


def _normalize_status(status: str | None) -> str | None:
    if status is None:
        return None
    status = status.strip().lower()
    return status or None


def classify(item: Union[ContentItem, Media]) -> LifecycleState:
    """Classify a content item into its lifecycle state.

    Precedence:
    1. Status is a pending token -> PENDING
    2. Status missing or a failure token, and no metadata yet -> PENDING
    3. Status is a failure token -> FAILED
    4. Status is a completion token -> COMPLETED
    5. Anything else (unknown or missing status, metadata present) -> COMPLETED

    Args:
        item: A ContentItem, or its Media record directly.

    Returns:
        LifecycleState for the current snapshot.
    """
    media = item.media if isinstance(item, ContentItem) else item
    status = _normalize_status(media.download_status)

    if status in PENDING_STATUSES:
        return LifecycleState.PENDING

    if (status is None or status in FAILURE_STATUSES) and media.lacks_metadata:
        return LifecycleState.PENDING

    if status in FAILURE_STATUSES:
        return LifecycleState.FAILED

    if status in COMPLETION_STATUSES:
        return LifecycleState.COMPLETED

    # Unknown or missing status with metadata present
    return LifecycleState.COMPLETED


def tag(item: ContentItem) -> ClassifiedItem:
    """Pair an item with its current lifecycle state."""
    return ClassifiedItem(item=item, state=classify(item))


def is_pending(item: ContentItem) -> bool:
    return classify(item) is LifecycleState.PENDING
