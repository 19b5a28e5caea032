"""Screen modules for the TUI."""
from __future__ import annotations

# Import all screen modules to register them with the router
from . import (
    create,
    home,
    sheet,
    welcome,
)

__all__ = [
    "create",
    "home",
    "sheet",
    "welcome",
]
