"""Presentation helpers for library views.

Turns classified items into what a view displays: card fields, platform
filters, dashboard sections and gallery navigation. Lifecycle state comes
from the classifier once per snapshot; nothing here re-derives it from raw
status strings.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from mindstore.core.classifier import tag
from mindstore.core.config import DEFAULT_API_URL
from mindstore.core.content import ClassifiedItem, ContentItem, LifecycleState, MediaType, Platform
from mindstore.core.media import GalleryEntry, resolve_gallery, resolve_thumbnail

PLATFORM_TAGS = {
    Platform.INSTAGRAM: "#INSTA",
    Platform.YOUTUBE: "#YOUTUBE",
    Platform.TWITTER: "#TWITTER",
    Platform.LINKEDIN: "#LINKEDIN",
    Platform.TIKTOK: "#TIKTOK",
}

PLATFORM_NAMES = {
    Platform.INSTAGRAM: "Instagram",
    Platform.YOUTUBE: "YouTube",
    Platform.TWITTER: "Twitter",
    Platform.TIKTOK: "TikTok",
    Platform.LINKEDIN: "LinkedIn",
}

FILTER_PLATFORMS = ["all", "instagram", "youtube", "twitter", "linkedin", "tiktok"]


def _as_classified(items: Iterable[ContentItem | ClassifiedItem]) -> list[ClassifiedItem]:
    return [i if isinstance(i, ClassifiedItem) else tag(i) for i in items]


def filter_items(
    items: Iterable[ClassifiedItem],
    platform: str = "all",
    query: str = "",
) -> list[ClassifiedItem]:
    """Apply the platform tab and search box.

    Search is case-insensitive over title, author and platform.
    """
    result = list(items)
    if platform != "all":
        result = [i for i in result if i.media.platform.value == platform]

    query = query.strip().lower()
    if query:
        result = [
            i
            for i in result
            if query in (i.media.title or "").lower()
            or query in (i.media.author or "").lower()
            or query in i.media.platform.value
        ]
    return result


@dataclass
class DashboardSections:
    """Dashboard grouping of a library snapshot.

    `synced` overlaps the other two; `processing` and `all_content` partition
    the snapshot.
    """

    processing: list[ClassifiedItem]
    synced: list[ClassifiedItem]
    all_content: list[ClassifiedItem]


def dashboard_sections(items: Iterable[ContentItem | ClassifiedItem]) -> DashboardSections:
    classified = _as_classified(items)
    return DashboardSections(
        processing=[i for i in classified if i.state is LifecycleState.PENDING],
        synced=[i for i in classified if i.media.drive_file_id or i.media.drive_view_link],
        all_content=[i for i in classified if i.state is not LifecycleState.PENDING],
    )


def state_counts(items: Iterable[ClassifiedItem]) -> dict[str, int]:
    counts = {state.value: 0 for state in LifecycleState}
    for item in items:
        counts[item.state.value] += 1
    return counts


def fallback_title(platform: Platform, media_type: MediaType) -> str:
    """Title used when the server sent neither title nor author."""
    kind = "Video" if media_type is MediaType.VIDEO else "Post"
    return f"{PLATFORM_NAMES.get(platform, 'Media')} {kind}"


@dataclass(frozen=True)
class CardView:
    """Everything a library card renders for one item."""

    key: str
    state: LifecycleState
    platform_tag: str
    display_title: str
    display_meta: str
    thumbnail_url: Optional[str]
    is_video: bool
    show_synced_badge: bool
    show_play: bool

    @property
    def is_pending(self) -> bool:
        return self.state is LifecycleState.PENDING

    @property
    def is_failed(self) -> bool:
        return self.state is LifecycleState.FAILED

    @classmethod
    def from_item(
        cls,
        item: ClassifiedItem | ContentItem,
        *,
        api_url: str = DEFAULT_API_URL,
    ) -> "CardView":
        classified = item if isinstance(item, ClassifiedItem) else tag(item)
        media = classified.media
        state = classified.state
        pending = state is LifecycleState.PENDING
        completed = state is LifecycleState.COMPLETED
        is_video = media.media_type is MediaType.VIDEO

        if pending:
            title = "Processing..."
            meta = "Fetching metadata..."
        else:
            title = media.title or media.author or fallback_title(media.platform, media.media_type)
            saved_at = classified.item.saved_at
            meta = saved_at.strftime("%m-%d-%y") if saved_at else "No date"

        return cls(
            key=classified.key,
            state=state,
            platform_tag=PLATFORM_TAGS.get(media.platform, "#MEDIA"),
            display_title=title,
            display_meta=meta,
            thumbnail_url=resolve_thumbnail(
                media.thumbnail_url, media.drive_file_id, api_url=api_url
            ),
            is_video=is_video,
            show_synced_badge=bool(media.drive_view_link) and completed,
            show_play=is_video and completed,
        )


class GalleryCursor:
    """Circular navigation over a resolved gallery.

    Example:
        cursor = GalleryCursor.for_item(item)
        cursor.next()       # wraps to 0 after the last entry
        cursor.go_to(2)     # dot-indicator jump
    """

    def __init__(self, entries: list[GalleryEntry]):
        self.entries = entries
        self.index = 0

    @classmethod
    def for_item(cls, item: ContentItem | ClassifiedItem) -> "GalleryCursor":
        return cls(resolve_gallery(item.media))

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def has_navigation(self) -> bool:
        """Arrows and dots are shown only for multi-entry galleries."""
        return len(self.entries) > 1

    @property
    def current(self) -> Optional[GalleryEntry]:
        if not self.entries:
            return None
        return self.entries[self.index]

    def step(self, delta: int) -> int:
        """Move by `delta` entries, wrapping at both ends."""
        if self.entries:
            self.index = (self.index + delta) % len(self.entries)
        return self.index

    def next(self) -> int:
        return self.step(1)

    def previous(self) -> int:
        return self.step(-1)

    def go_to(self, index: int) -> int:
        """Jump to an absolute index.

        Raises:
            IndexError: If index is outside the gallery.
        """
        if not 0 <= index < len(self.entries):
            raise IndexError(f"gallery index {index} out of range")
        self.index = index
        return self.index

    @property
    def type_label(self) -> str:
        """VIDEO or IMAGE, with the position when there are several entries."""
        entry = self.current
        label = "VIDEO" if entry is not None and entry.is_video else "IMAGE"
        if self.has_navigation:
            return f"{label} {self.index + 1}/{len(self.entries)}"
        return label

    def stream_url(self, api_base: str) -> Optional[str]:
        """Streaming endpoint for the current entry, if it is a synced video."""
        entry = self.current
        if entry is None or not entry.is_video or not entry.source_id:
            return None
        return f"{api_base.rstrip('/')}/drive/stream/{entry.source_id}"
