"""Navigation stack manager for screen-based routing."""
from __future__ import annotations


class Navigator:
    """Stack-based navigation with breadcrumbs.

    - Push on enter: opening Create or a Sheet pushes onto the stack
    - Reset on Home/Welcome: clears the stack to that root
    """

    # Screen ID to human-readable label mapping
    SCREEN_LABELS = {
        "welcome": "Welcome",
        "home": "Home",
        "create": "Create Character",
        "sheet": "Character Sheet",
    }

    ROOTS = ("welcome", "home")

    def __init__(self, root: str = "welcome"):
        self.stack: list[str] = [root]

    def push(self, screen: str) -> None:
        """Navigate to a new screen by pushing onto the stack.

        Args:
            screen: Screen identifier to navigate to
        """
        self.stack.append(screen)

    def reset(self, root: str) -> None:
        self.stack = [root]

    def go(self, screen: str) -> None:
        """Roots replace the stack; anything else is pushed (without duplicates)."""
        if screen in self.ROOTS:
            self.reset(screen)
        elif self.current() != screen:
            self.push(screen)

    def current(self) -> str:
        return self.stack[-1]

    def breadcrumbs(self) -> str:
        """Generate breadcrumb navigation string.

        Returns:
            Breadcrumb path like "Home > Character Sheet"
        """
        labels = [self.SCREEN_LABELS.get(screen, screen) for screen in self.stack]
        return " > ".join(labels)
