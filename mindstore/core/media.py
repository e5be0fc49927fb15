"""Media resolution for Mindstore.

Derives what to display for a content item from partially-synced metadata:
- resolve_thumbnail: card thumbnail URL with proxy and Drive fallbacks
- resolve_gallery: ordered, navigable list of assets for the detail view
- infer_is_video: video/image guess when the server sent no explicit type

Archived files live on Google Drive; preview URLs are built from the Drive
file id, which may arrive directly or only inside a view link.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlsplit

from mindstore.core.config import DEFAULT_API_URL
from mindstore.core.content import Media, MediaAsset, MediaType

DRIVE_THUMBNAIL_URL = "https://drive.google.com/thumbnail?id={file_id}&sz=w400"
DRIVE_LARGE_IMAGE_URL = "https://drive.google.com/thumbnail?id={file_id}&sz=w1920"
DRIVE_VIDEO_PREVIEW_URL = "https://drive.google.com/file/d/{file_id}/preview"

# https://drive.google.com/file/d/{fileId}/view (or /preview)
DRIVE_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)")

# Short-form video paths (Instagram reels, YouTube shorts)
SHORT_VIDEO_PATTERN = re.compile(r"/(reel|reels|shorts)/")

LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "::1"})


def is_external_url(url: Optional[str]) -> bool:
    """Check whether a URL points at a third-party origin.

    Loopback hosts, data URIs, relative paths and unparsable values are
    treated as local.
    """
    if not url:
        return False
    if url.startswith("data:"):
        return False
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    if hostname in LOCAL_HOSTNAMES or hostname.endswith(".localhost"):
        return False
    try:
        return not ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return True


def proxy_url(url: str, api_url: str = DEFAULT_API_URL) -> str:
    """Route an external image through the API's image proxy."""
    return f"{api_url.rstrip('/')}/image-proxy?url={quote(url, safe='')}"


def drive_thumbnail_url(file_id: Optional[str]) -> Optional[str]:
    if not file_id:
        return None
    return DRIVE_THUMBNAIL_URL.format(file_id=file_id)


def resolve_thumbnail(
    thumbnail_url: Optional[str],
    drive_file_id: Optional[str],
    *,
    api_url: str = DEFAULT_API_URL,
) -> Optional[str]:
    """Resolve the thumbnail shown on a content card.

    1. Platform thumbnail, proxied when it is external
    2. Drive thumbnail once the file has been archived
    3. None (caller shows a placeholder)
    """
    if thumbnail_url:
        if is_external_url(thumbnail_url):
            return proxy_url(thumbnail_url, api_url)
        return thumbnail_url
    return drive_thumbnail_url(drive_file_id)


def extract_drive_file_id(view_link: Optional[str]) -> Optional[str]:
    """Pull the Drive file id out of a /d/{id}/ view link."""
    if not view_link:
        return None
    match = DRIVE_ID_PATTERN.search(view_link)
    return match.group(1) if match else None


def archive_id(file_id: Optional[str], view_link: Optional[str]) -> Optional[str]:
    """Drive file id, from the direct field or parsed from the view link."""
    return file_id or extract_drive_file_id(view_link)


def _looks_like_video(title: Optional[str], url: Optional[str]) -> bool:
    # Instagram titles single videos "Video by <username>"
    if title and title.lower().startswith("video by"):
        return True
    return bool(url and SHORT_VIDEO_PATTERN.search(url))


def infer_is_video(media: Media) -> bool:
    """Decide whether an item is a video.

    An explicit media type wins; otherwise fall back to the title prefix
    and short-form video URL paths. Defaults to image.
    """
    if media.media_type is MediaType.VIDEO:
        return True
    if media.media_type is MediaType.IMAGE:
        return False
    return _looks_like_video(media.title, media.url)


def _asset_is_video(asset: MediaAsset) -> bool:
    if asset.media_type is MediaType.VIDEO:
        return True
    if asset.media_type is MediaType.IMAGE:
        return False
    return _looks_like_video(None, asset.url)


def viewable_url(file_id: str, is_video: bool) -> str:
    """Full-size preview URL for an archived file."""
    if is_video:
        return DRIVE_VIDEO_PREVIEW_URL.format(file_id=file_id)
    return DRIVE_LARGE_IMAGE_URL.format(file_id=file_id)


@dataclass(frozen=True)
class GalleryEntry:
    """One navigable asset in the detail view.

    Attributes:
        url: What to display; None when nothing is viewable yet.
        source_id: Drive file id, None until the asset is archived.
        is_video: Whether to render a player instead of an image.
        is_synced: Whether the asset has been archived to Drive.
    """

    url: Optional[str]
    source_id: Optional[str]
    is_video: bool
    is_synced: bool


def _entry_for_asset(asset: MediaAsset) -> GalleryEntry:
    file_id = archive_id(asset.drive_file_id, asset.drive_view_link)
    is_video = _asset_is_video(asset)
    if file_id:
        return GalleryEntry(
            url=viewable_url(file_id, is_video),
            source_id=file_id,
            is_video=is_video,
            is_synced=True,
        )
    return GalleryEntry(
        url=asset.thumbnail_url or asset.url,
        source_id=None,
        is_video=is_video,
        is_synced=False,
    )


def resolve_gallery(media: Media) -> list[GalleryEntry]:
    """Build the gallery for a content item.

    1. mediaItems, in order, when the server sent any
    2. A single archived asset, with inferred type
    3. The platform thumbnail, unsynced, with inferred type
    4. Empty ("no preview available")
    """
    if media.media_items:
        return [_entry_for_asset(asset) for asset in media.media_items]

    is_video = infer_is_video(media)
    file_id = archive_id(media.drive_file_id, media.drive_view_link)
    if file_id:
        return [
            GalleryEntry(
                url=viewable_url(file_id, is_video),
                source_id=file_id,
                is_video=is_video,
                is_synced=True,
            )
        ]

    if media.thumbnail_url:
        return [
            GalleryEntry(
                url=media.thumbnail_url,
                source_id=None,
                is_video=is_video,
                is_synced=False,
            )
        ]

    return []
