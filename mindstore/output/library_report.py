"""Library report writer for Mindstore.

Renders a snapshot of a library view (cards, lifecycle counts, selection)
as plain text for the terminal. Uses Jinja2 templates so the layout can
change without touching the view code.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from mindstore.core.content import ClassifiedItem
from mindstore.core.presentation import CardView, state_counts

# Path to templates directory
TEMPLATES_DIR = Path(__file__).parent / "templates"

DEFAULT_TEMPLATE = "library.txt.j2"

STATE_MARKERS = {
    "pending": "~",
    "failed": "!",
    "completed": "+",
}


def truncate(value: Optional[str], length: int = 60) -> str:
    """Shorten a string for a single terminal column."""
    if not value:
        return ""
    if len(value) <= length:
        return value
    return value[: length - 3].rstrip() + "..."


def _create_jinja_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["truncate_col"] = truncate
    env.filters["state_marker"] = lambda state: STATE_MARKERS.get(state, "?")
    return env


@dataclass
class LibrarySnapshot:
    """What a report shows at one point in time."""

    items: list[ClassifiedItem]
    page: int = 0
    has_more: bool = False
    polling: bool = False
    selected: list[str] = field(default_factory=list)
    error: Optional[str] = None


class LibraryReportWriter:
    """Renders library snapshots with a Jinja2 template."""

    def __init__(self, api_url: str, template: str = DEFAULT_TEMPLATE):
        """Initialize writer.

        Args:
            api_url: API root, used to build proxied thumbnail URLs.
            template: Template file name inside the templates directory.
        """
        self.api_url = api_url
        self._env = _create_jinja_env()
        self._template = self._env.get_template(template)

    def render(self, snapshot: LibrarySnapshot) -> str:
        cards = [CardView.from_item(i, api_url=self.api_url) for i in snapshot.items]
        return self._template.render(
            cards=cards,
            counts=state_counts(snapshot.items),
            snapshot=snapshot,
            selected=set(snapshot.selected),
        )
