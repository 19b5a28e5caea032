"""Immutable theme handed to every screen and component."""
from __future__ import annotations

from dataclasses import dataclass

# Palette
PRIMARY = "#7c3aed"
SECONDARY = "#ec4899"
SUCCESS = "#10b981"
WARNING = "#f59e0b"
ERROR = "#ef4444"
MUTED = "#6b7280"
FOREGROUND = "#f9fafb"
HIGHLIGHT = "#a78bfa"


@dataclass(frozen=True)
class Theme:
    """Rich style definitions for the whole UI.

    Constructed once per session and passed explicitly into constructors;
    nothing reads styling from module globals.
    """

    base: str = FOREGROUND
    muted: str = MUTED
    title: str = f"bold {PRIMARY}"
    subtitle: str = f"italic {MUTED}"
    header: str = f"bold {SECONDARY}"
    border: str = MUTED
    highlight_border: str = PRIMARY
    selected: str = f"bold {HIGHLIGHT} on #374151"
    unselected: str = FOREGROUND
    cursor: str = f"bold {PRIMARY}"
    input: str = FOREGROUND
    focused_input: str = f"bold {FOREGROUND} underline"
    button: str = f"{FOREGROUND} on {MUTED}"
    focused_button: str = f"bold {FOREGROUND} on {PRIMARY}"
    help: str = MUTED
    error: str = f"bold {ERROR}"
    success: str = f"bold {SUCCESS}"
    warning: str = WARNING
    stat_value: str = f"bold {PRIMARY}"
    hp_current: str = f"bold {SUCCESS}"
    hp_max: str = MUTED
    hp_low: str = f"bold {WARNING}"
    hp_critical: str = f"bold {ERROR}"
    logo: str = f"bold {PRIMARY}"


DEFAULT_THEME = Theme()


LOGO_TEXT = r"""
 ____  _   _ ____    ____  _                      _
|  _ \| \ | |  _ \  / ___|| |__   __ _ _ __ __ _ | |_ ___ _ __
| | | |  \| | | | | \___ \| '_ \ / _' | '__/ _' || __/ _ \ '__|
| |_| | |\  | |_| |  ___) | | | | (_| | | | (_| || ||  __/ |
|____/|_| \_|____/  |____/|_| |_|\__,_|_|  \__,_| \__\___|_|
"""

LOGO_SMALL = """
╔═══════════════════════╗
║   D&D Character App   ║
╚═══════════════════════╝
"""
