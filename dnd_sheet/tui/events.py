"""Events and messages flowing through the TUI state machine.

Everything the Router handles is one of these plain values: raw input from the
transport (keys, resizes, ticks), intra-component messages (table intents,
modal save/cancel) and domain messages produced by screens or by Command
results.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..models import Character, User
    from .table import TableRow


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSPORT EVENTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Key:
    """A key press, named the way terminals report it.

    Printable characters are their own name ("a", "?", " "); everything else
    uses lowercase names such as "enter", "esc", "tab", "shift+tab", "up",
    "pgdown", "backspace" or "ctrl+s".
    """

    name: str

    @property
    def is_printable(self) -> bool:
        return len(self.name) == 1 and self.name.isprintable()


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """Recurring low-priority tick; only drives cursor blinking."""


# ═══════════════════════════════════════════════════════════════════════════════
# COMPONENT MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TableSelect:
    row: TableRow


@dataclass(frozen=True)
class TableEdit:
    row: TableRow


@dataclass(frozen=True)
class TableDelete:
    row: TableRow


@dataclass(frozen=True)
class ModalSave:
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ModalCancel:
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# DOMAIN MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class UserLoggedIn:
    user: User


@dataclass(frozen=True)
class Logout:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class CharactersLoaded:
    characters: list[Character]


@dataclass(frozen=True)
class NavigateToCreate:
    pass


@dataclass(frozen=True)
class NavigateBack:
    pass


@dataclass(frozen=True)
class CharacterSelected:
    character: Character


@dataclass(frozen=True)
class CharacterCreated:
    character: Character


@dataclass(frozen=True)
class CharacterUpdated:
    character: Character


@dataclass(frozen=True)
class CharacterDeleted:
    character_id: str


@dataclass(frozen=True)
class StatusMessage:
    message: str
    is_error: bool = False


@dataclass(frozen=True)
class ClearStatus:
    pass


@dataclass(frozen=True)
class SheetDataChanged:
    """Result of a sheet write: a fresh copy of one cached list.

    ``kind`` names the list ("attacks", "actions", "inventory", "magic_items",
    "spells", "details"); ``records`` is whatever the store returned for it.
    """

    kind: str
    records: Any
    message: str
    character: Character | None = None
