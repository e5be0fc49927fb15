"""Save flow for new links.

Saves a URL to the user's library and announces the change so every open
view reloads. Saving a URL that is already in the library (409) counts as
success with its own message.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from mindstore.core.events import ContentChanged, ContentEvents
from mindstore.core.exceptions import ApiError
from mindstore.core.library_api import LibraryApi

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "Content saved!"
DUPLICATE_MESSAGE = "Already in your library!"
FAILED_MESSAGE = "Failed to save"


@dataclass
class SaveOutcome:
    """Result of a save, ready to show to the user.

    Attributes:
        success: Whether the link is now in the library.
        message: User-facing message.
        conflict: True when the link was already saved.
        content_hash: Server key of the new item, when reported.
        platform: Platform the server detected, when reported.
    """

    success: bool
    message: str
    conflict: bool = False
    content_hash: Optional[str] = None
    platform: Optional[str] = None


class ContentSaver:
    """Saves links for one user and broadcasts the change."""

    def __init__(
        self,
        api: LibraryApi,
        user_id: Optional[str],
        *,
        events: Optional[ContentEvents] = None,
    ):
        self.api = api
        self.user_id = user_id
        self.events = events
        self.saving = False

    async def save(self, url: str, *, source: str = "add") -> SaveOutcome:
        """Save a URL. Never raises; failures come back as an outcome.

        Args:
            url: Link to save.
            source: Event source tag; duplicates publish "<source>-duplicate".
        """
        url = url.strip()
        if not url or not self.user_id:
            return SaveOutcome(success=False, message=FAILED_MESSAGE)
        if self.saving:
            return SaveOutcome(success=False, message="A save is already in progress")

        self.saving = True
        try:
            data = await self.api.save_url(url, self.user_id)
        except ApiError as e:
            if e.is_conflict:
                logger.info("URL already saved: %s", url)
                await self._announce(f"{source}-duplicate", url)
                return SaveOutcome(success=True, message=DUPLICATE_MESSAGE, conflict=True)
            logger.warning("Failed to save %s: %s", url, e, extra={"status": e.status})
            return SaveOutcome(success=False, message=str(e) or FAILED_MESSAGE)
        finally:
            self.saving = False

        if not data.get("success"):
            message = data.get("error") or FAILED_MESSAGE
            logger.warning("Server refused to save %s: %s", url, message)
            return SaveOutcome(success=False, message=message)

        logger.info("Saved %s", url, extra={"content_hash": data.get("contentHash")})
        await self._announce(source, url)
        return SaveOutcome(
            success=True,
            message=SAVED_MESSAGE,
            content_hash=data.get("contentHash"),
            platform=data.get("platform"),
        )

    async def _announce(self, source: str, url: str) -> None:
        if self.events is not None:
            await self.events.publish(ContentChanged(source=source, url=url))
