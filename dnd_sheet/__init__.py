"""dnd_sheet: keyboard-driven D&D 5e character sheets for the terminal."""

__version__ = "0.1.0"
