"""Per-connection session state shared across screens."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import Character, User


@dataclass
class Session:
    """Connection-scoped state owned by the Router.

    Created when the connection starts and dropped with it; screens read it
    but only the Router replaces the user or the character cache.
    """

    # Transport identity (authorized-keys line) if the client offered one
    public_key: str | None = None
    current_user: User | None = None

    width: int = 80
    height: int = 24

    characters: list[Character] = field(default_factory=list)

    # Session history for debugging
    session_history: list[str] = field(default_factory=list)

    def remember(self, **kwargs) -> None:
        """Update state with new values.

        Args:
            **kwargs: Attributes to update (e.g., width=120, height=40)
        """
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def add_to_history(self, screen: str) -> None:
        """Record screen visit in session history.

        Args:
            screen: Screen identifier that was visited
        """
        self.session_history.append(screen)

    def logout(self) -> None:
        self.current_user = None
        self.characters = []
