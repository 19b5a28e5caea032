"""Home screen: the logged-in user's character list."""
from __future__ import annotations

import logging
from typing import Any

from rich.console import Group, RenderableType
from rich.text import Text

from ...models import Character
from ...store import StoreError
from ..commands import Command
from ..components import render_help
from ..events import (
    CharacterDeleted,
    CharacterSelected,
    CharactersLoaded,
    Key,
    Logout,
    NavigateToCreate,
    Quit,
    StatusMessage,
)
from ..router import register_screen
from ..theme import LOGO_SMALL
from .base import Screen

logger = logging.getLogger(__name__)

LIST_HELP = "↑/↓: navigate • enter: select • d: delete • l: logout • q: quit"
CONFIRM_HELP = "y: confirm delete • n: cancel"


@register_screen("home")
class HomeScreen(Screen):
    """Character list with a trailing "+ Create New Character" entry.

    The create entry sits at index ``len(characters)``.
    """

    def __init__(self, router):
        super().__init__(router)
        self.user = self.session.current_user
        self.characters: list[Character] = []
        self.selected_index = 0
        self.confirm_delete = False
        self.error = ""

    def init(self) -> list[Any]:
        return [self.router.load_characters()]

    def set_characters(self, characters: list[Character]) -> None:
        self.characters = list(characters)
        # index len(characters) is the create row
        self.selected_index = min(self.selected_index, len(self.characters))

    def _selected(self) -> Character | None:
        if self.selected_index < len(self.characters):
            return self.characters[self.selected_index]
        return None

    # ── Update ─────────────────────────────────────────────────────

    def update(self, event: object) -> list[Any]:
        if isinstance(event, CharactersLoaded):
            self.set_characters(event.characters)
            return []
        if isinstance(event, StatusMessage):
            if event.is_error:
                self.error = event.message
            return []
        if not isinstance(event, Key):
            return []
        if self.confirm_delete:
            return self._handle_delete_confirm(event)
        return self._handle_input(event)

    def _handle_input(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("up", "k"):
            if self.selected_index > 0:
                self.selected_index -= 1
        elif name in ("down", "j"):
            if self.selected_index < len(self.characters):
                self.selected_index += 1
        elif name == "enter":
            character = self._selected()
            if character is None:
                return [NavigateToCreate()]
            return [CharacterSelected(character=character)]
        elif name in ("d", "delete"):
            if self._selected() is not None:
                self.confirm_delete = True
        elif name == "l":
            return [Logout()]
        elif name == "q":
            return [Quit()]
        return []

    def _handle_delete_confirm(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("y", "Y"):
            character = self._selected()
            self.confirm_delete = False
            if character is not None:
                return [self._delete_command(character)]
        elif name in ("n", "N", "esc"):
            self.confirm_delete = False
        return []

    def _delete_command(self, character: Character) -> Command:
        store = self.store
        character_id = character.id

        def run():
            try:
                store.delete_character(character_id)
            except StoreError as e:
                logger.exception("Deleting character %s failed", character_id)
                return StatusMessage(message=f"Error deleting character: {e}", is_error=True)
            return CharacterDeleted(character_id=character_id)

        return Command("delete-character", run)

    # ── View ───────────────────────────────────────────────────────

    def view(self) -> RenderableType:
        theme = self.theme
        parts: list[RenderableType] = [Text(LOGO_SMALL.strip("\n"), style=theme.logo), Text("")]

        user_info = "Logged in"
        if self.user is not None and self.user.email:
            user_info = f"Logged in as: {self.user.email}"
        parts += [Text(user_info, style=theme.subtitle), Text(""), Text("Your Characters", style=theme.title), Text("")]

        if not self.characters:
            parts.append(Text("No characters yet. Create your first adventurer!", style=theme.muted))
        for i, c in enumerate(self.characters):
            selected = i == self.selected_index
            cursor = "> " if selected else "  "
            parts.append(
                Text(
                    f"{cursor}{c.name} - Level {c.level} {c.race} {c.class_}",
                    style=theme.selected if selected else theme.unselected,
                )
            )
        parts.append(Text(""))

        create_selected = self.selected_index == len(self.characters)
        line = Text("> " if create_selected else "  ", style=theme.cursor)
        line.append("+ Create New Character", style=theme.selected if create_selected else theme.unselected)
        parts.append(line)

        character = self._selected()
        if self.confirm_delete and character is not None:
            parts.append(Text(""))
            parts.append(Text(f"Delete {character.name}? This cannot be undone. (y/n)", style=theme.warning))

        if self.error:
            parts.append(Text(""))
            parts.append(Text(f"Error: {self.error}", style=theme.error))

        parts.append(Text(""))
        parts.append(render_help(CONFIRM_HELP if self.confirm_delete else LIST_HELP, theme))
        return self.place(Group(*parts))

    def rows(self) -> list[str]:
        """Plain labels in list order, the create entry last."""
        labels = [f"{c.name} - Level {c.level} {c.race} {c.class_}" for c in self.characters]
        return labels + ["+ Create New Character"]
