"""Common base for every screen."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import RenderableType
from rich.text import Text

from ..components import centered

if TYPE_CHECKING:
    from ..router import Router


class Screen:
    """One unit of the UI: ``init`` / ``update`` / ``view``.

    ``init`` and ``update`` return a list mixing immediate messages (handled
    by the Router within the same turn) and Commands (run later by the
    runtime). The Router never reaches past these hooks.
    """

    screen_id = ""

    def __init__(self, router: Router):
        self.router = router
        self.store = router.store
        self.settings = router.settings
        self.session = router.session
        self.theme = router.theme

    @property
    def width(self) -> int:
        return self.session.width

    @property
    def height(self) -> int:
        return self.session.height

    def init(self) -> list[Any]:
        return []

    def update(self, event: object) -> list[Any]:
        return []

    def view(self) -> RenderableType:
        return Text("")

    def place(self, body: RenderableType) -> RenderableType:
        """Center ``body`` in the frame, leaving the breadcrumb line free."""
        return centered(body, self.width, max(1, self.height - 1))
