"""Root controller and screen registry for the TUI."""
from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any, Callable

from rich.console import Group, RenderableType

from ..auth import AuthService, UserNotFound
from ..store import StoreError
from .commands import Command
from .components import render_breadcrumbs
from .events import (
    CharacterCreated,
    CharacterDeleted,
    CharacterSelected,
    CharactersLoaded,
    CharacterUpdated,
    Key,
    Logout,
    NavigateBack,
    NavigateToCreate,
    Quit,
    Resize,
    StatusMessage,
    UserLoggedIn,
)
from .navigator import Navigator
from .state import Session
from .theme import DEFAULT_THEME, Theme

if TYPE_CHECKING:
    from ..settings import Settings
    from ..store import CharacterStore
    from .screens.base import Screen

logger = logging.getLogger(__name__)


class Router:
    """Owns the active screen and the session; every event passes through here.

    ``handle`` processes one event to completion: the active screen's
    immediate messages are dispatched in FIFO order within the same call and
    the deferred Commands are returned for the runtime to execute.
    """

    def __init__(
        self,
        store: CharacterStore,
        settings: Settings,
        *,
        auth: AuthService | None = None,
        theme: Theme = DEFAULT_THEME,
        public_key: str | None = None,
    ):
        """Initialize router with dependencies.

        Args:
            store: Persistence collaborator
            settings: Application settings
            auth: Authentication service (defaults to one over ``store``)
            theme: Styling handed to every screen
            public_key: Identity key offered by the transport, if any
        """
        # Screens register themselves on import.
        from . import screens  # noqa: F401

        self.store = store
        self.settings = settings
        self.auth = auth or AuthService(store)
        self.theme = theme
        self.session = Session(
            public_key=public_key,
            width=settings.DND_DEFAULT_WIDTH,
            height=settings.DND_DEFAULT_HEIGHT,
        )
        self.nav = Navigator()
        self.screen: Screen | None = None
        self.running = True

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self) -> list[Command]:
        """Pick the first screen and return its start-up Commands.

        A registered identity key logs in silently and lands on Home.
        """
        key = self.session.public_key
        if key:
            try:
                user = self.auth.login_with_public_key(key)
            except UserNotFound:
                logger.info("Public key not registered; starting at welcome")
            else:
                logger.info("Auto-login for user %s", user.id)
                self.session.current_user = user
                return self._drain(self._show("home"))
        return self._drain(self._show("welcome"))

    def handle(self, event: object) -> list[Command]:
        if not self.running:
            return []
        return self._drain([event])

    def view(self) -> RenderableType:
        if self.screen is None:
            return Group()
        return Group(render_breadcrumbs(self.nav, self.theme), self.screen.view())

    # ── Dispatch ───────────────────────────────────────────────────

    def _drain(self, pending: list[Any]) -> list[Command]:
        queue = deque(pending)
        commands: list[Command] = []
        while queue:
            item = queue.popleft()
            if item is None:
                continue
            if isinstance(item, Command):
                commands.append(item)
                continue
            queue.extend(self._dispatch(item))
            if not self.running:
                break
        return commands

    def _dispatch(self, msg: object) -> list[Any]:
        if isinstance(msg, Key) and msg.name == "ctrl+c":
            return self._quit()
        if isinstance(msg, Quit):
            return self._quit()

        if isinstance(msg, Resize):
            self.session.remember(width=msg.width, height=msg.height)
            return self._forward(msg)

        if isinstance(msg, UserLoggedIn):
            self.session.current_user = msg.user
            logger.info("User %s logged in", msg.user.id)
            return self._show("home")

        if isinstance(msg, Logout):
            logger.info("User logged out")
            self.session.logout()
            return self._show("welcome")

        if isinstance(msg, CharactersLoaded):
            self.session.characters = list(msg.characters)
            return self._forward(msg)

        if isinstance(msg, NavigateToCreate):
            return self._show("create")

        if isinstance(msg, CharacterSelected):
            return self._show("sheet", character=msg.character)

        if isinstance(msg, CharacterCreated):
            return self._show("sheet", character=msg.character) + [self.load_characters()]

        if isinstance(msg, CharacterUpdated):
            out = self._forward(msg)
            return out + [self.load_characters()]

        if isinstance(msg, CharacterDeleted):
            return self._show("home")

        if isinstance(msg, NavigateBack):
            if self.nav.current() in ("create", "sheet"):
                return self._show("home")
            return []

        return self._forward(msg)

    def _forward(self, msg: object) -> list[Any]:
        if self.screen is None:
            return []
        return list(self.screen.update(msg) or [])

    def _quit(self) -> list[Any]:
        logger.info("Quit requested")
        self.running = False
        return []

    def _show(self, screen_id: str, **kwargs: Any) -> list[Any]:
        """Replace the active screen and return its ``init`` output."""
        factory = SCREENS.get(screen_id)
        if factory is None:
            root = "home" if self.session.current_user else "welcome"
            logger.warning("Unknown screen '%s', returning to %s", screen_id, root)
            screen_id = root
            factory = SCREENS[root]
            kwargs = {}

        previous = self.nav.current()
        self.nav.go(screen_id)
        self.session.add_to_history(screen_id)
        logger.info("Screen %s -> %s", previous, screen_id)

        self.screen = factory(self, **kwargs)
        return list(self.screen.init() or [])

    # ── Shared commands ────────────────────────────────────────────

    def load_characters(self) -> Command:
        user = self.session.current_user
        store = self.store

        def run():
            if user is None:
                return CharactersLoaded(characters=[])
            try:
                return CharactersLoaded(characters=store.list_characters(user.id))
            except StoreError as e:
                logger.exception("Loading characters failed")
                return StatusMessage(message=f"Error loading characters: {e}", is_error=True)

        return Command("load-characters", run)


# Screen registry - maps screen IDs to screen classes
# Populated by the modules in ``dnd_sheet.tui.screens``
SCREENS: dict[str, Callable[..., Screen]] = {}


def register_screen(screen_id: str):
    """Decorator to register a screen class.

    Usage:
        @register_screen("home")
        class HomeScreen(Screen):
            ...
    """
    def decorator(cls):
        SCREENS[screen_id] = cls
        cls.screen_id = screen_id
        return cls
    return decorator
