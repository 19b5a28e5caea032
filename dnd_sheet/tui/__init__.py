"""TUI (Terminal User Interface) module for dnd_sheet.

Provides a screen-based state machine driven by key, resize and tick events.
"""
from .navigator import Navigator
from .router import Router
from .runtime import Runtime
from .state import Session

__all__ = ["Navigator", "Router", "Runtime", "Session"]
