"""Content data model for Mindstore.

This module defines the structures the client builds from API responses:
- Platform / MediaType: Normalized enums for the media sub-record
- LifecycleState: Ingestion state derived by the classifier
- MediaAsset / Media / ContentItem: One saved link and its server-side metadata
- ClassifiedItem: A ContentItem tagged with its lifecycle state

The client never writes `media`; every poll replaces it with the latest
server snapshot.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Platform(str, Enum):
    """Source platform of a saved link."""

    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    OTHER = "other"


class MediaType(str, Enum):
    """Explicit media type reported by the server, when there is one."""

    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


class LifecycleState(str, Enum):
    """Ingestion lifecycle of a content item.

    - PENDING: Metadata, upload or archive still in flight
    - FAILED: Server gave up after producing some metadata
    - COMPLETED: Terminal success (or an unrecognized status with metadata)
    """

    PENDING = "pending"
    FAILED = "failed"
    COMPLETED = "completed"


def _parse_platform(value: Any) -> Platform:
    try:
        return Platform(str(value).lower())
    except ValueError:
        return Platform.OTHER


def _parse_media_type(value: Any) -> MediaType:
    try:
        return MediaType(str(value).lower())
    except ValueError:
        return MediaType.UNKNOWN


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_saved_at(value: Any) -> Optional[datetime]:
    """Normalize a savedAt value into an aware UTC datetime.

    Accepts Firestore-style wrappers ({"_seconds": n} or {"seconds": n}),
    epoch seconds, ISO-8601 strings and datetimes. Anything else yields None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if seconds is None:
            return None
        return normalize_saved_at(seconds)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return normalize_saved_at(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


@dataclass
class MediaAsset:
    """One sub-asset of a carousel/gallery item."""

    media_type: MediaType = MediaType.UNKNOWN
    drive_file_id: Optional[str] = None
    drive_view_link: Optional[str] = None
    thumbnail_url: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "MediaAsset":
        data = data or {}
        return cls(
            media_type=_parse_media_type(data.get("mediaType")),
            drive_file_id=_str_or_none(data.get("driveFileId")),
            drive_view_link=_str_or_none(data.get("driveViewLink")),
            thumbnail_url=_str_or_none(data.get("thumbnailUrl")),
            url=_str_or_none(data.get("url")),
        )


@dataclass
class Media:
    """Server-derived metadata for a saved link.

    Every field may be missing while ingestion is in progress.
    """

    platform: Platform = Platform.OTHER
    media_type: MediaType = MediaType.UNKNOWN
    title: Optional[str] = None
    author: Optional[str] = None
    caption: Optional[str] = None
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    drive_file_id: Optional[str] = None
    drive_view_link: Optional[str] = None
    media_items: list[MediaAsset] = field(default_factory=list)
    download_status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Media":
        data = data or {}
        raw_items = data.get("mediaItems")
        if not isinstance(raw_items, list):
            raw_items = []
        return cls(
            platform=_parse_platform(data.get("platform")),
            media_type=_parse_media_type(data.get("mediaType")),
            title=_str_or_none(data.get("title")),
            author=_str_or_none(data.get("author")),
            caption=_str_or_none(data.get("caption")),
            url=_str_or_none(data.get("url")),
            thumbnail_url=_str_or_none(data.get("thumbnailUrl")),
            drive_file_id=_str_or_none(data.get("driveFileId")),
            drive_view_link=_str_or_none(data.get("driveViewLink")),
            media_items=[MediaAsset.from_dict(i) for i in raw_items if isinstance(i, dict)],
            download_status=_str_or_none(data.get("downloadStatus")),
        )

    @property
    def lacks_metadata(self) -> bool:
        """True when no thumbnail, archive id, title or author has arrived."""
        return not (self.thumbnail_url or self.drive_file_id or self.title or self.author)


@dataclass
class ContentItem:
    """A user-saved link plus its server-side processing metadata.

    `content_hash` is the merge and selection key; older records only carry
    `id`, so use `key` rather than either field directly.
    """

    content_hash: Optional[str] = None
    id: Optional[str] = None
    saved_at: Optional[datetime] = None
    media: Media = field(default_factory=Media)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentItem":
        media = data.get("media")
        return cls(
            content_hash=_str_or_none(data.get("contentHash")),
            id=_str_or_none(data.get("id")),
            saved_at=normalize_saved_at(data.get("savedAt")),
            media=Media.from_dict(media if isinstance(media, dict) else None),
        )

    @property
    def key(self) -> str:
        return self.content_hash or self.id or ""


@dataclass(frozen=True)
class ClassifiedItem:
    """A content item tagged with its lifecycle state.

    Built once per snapshot so presentation code switches on `state`
    instead of re-inspecting media fields.
    """

    item: ContentItem
    state: LifecycleState

    @property
    def key(self) -> str:
        return self.item.key

    @property
    def media(self) -> Media:
        return self.item.media
