"""Reusable render helpers shared by the screens and the runtime."""
from __future__ import annotations

import io
from typing import TYPE_CHECKING

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from .navigator import Navigator
    from .theme import Theme


# ═══════════════════════════════════════════════════════════════════════════════
# LINES
# ═══════════════════════════════════════════════════════════════════════════════

def render_breadcrumbs(nav: Navigator, theme: Theme) -> Text:
    """Breadcrumb line like "Home > Character Sheet"."""
    return Text(nav.breadcrumbs(), style=theme.muted)


def render_status(message: str, is_error: bool, theme: Theme) -> Text:
    """Status line: "✓ msg" on success, "✗ msg" on failure, blank when empty."""
    if not message:
        return Text("")
    if is_error:
        return Text(f"✗ {message}", style=theme.error)
    return Text(f"✓ {message}", style=theme.success)


def render_error(message: str, theme: Theme) -> Text:
    return Text(f"Error: {message}", style=theme.error)


def render_help(text: str, theme: Theme) -> Text:
    return Text(text, style=theme.help)


def button(label: str, focused: bool, theme: Theme) -> Text:
    return Text(f"[ {label} ]", style=theme.focused_button if focused else theme.button)


def labeled(label: str, value: RenderableType | str, theme: Theme, width: int = 10) -> Text:
    """``label`` padded to ``width`` followed by the value."""
    out = Text(f"{label:<{width}}", style=theme.base)
    if isinstance(value, Text):
        out.append_text(value)
    else:
        out.append(str(value), style=theme.input)
    return out


# ═══════════════════════════════════════════════════════════════════════════════
# OVERLAYS / FRAMES
# ═══════════════════════════════════════════════════════════════════════════════

def overlay_panel(
    body: RenderableType,
    theme: Theme,
    title: str | None = None,
    width: int | None = None,
    padding: tuple[int, int] = (1, 2),
) -> Panel:
    """Bordered box drawn in the middle of the frame (help, confirmations)."""
    return Panel(
        body,
        title=Text(title, style=theme.title) if title else None,
        border_style=theme.highlight_border,
        padding=padding,
        width=width,
    )


def centered(renderable: RenderableType, width: int, height: int) -> Align:
    """Center ``renderable`` horizontally and vertically in a width x height frame."""
    return Align.center(renderable, vertical="middle", width=width, height=height)


def stack(*parts: RenderableType) -> Group:
    return Group(*parts)


def render_frame(renderable: RenderableType, width: int, height: int, styled: bool = True) -> str:
    """Render to a string of at most ``height`` lines at ``width`` columns.

    ``styled`` keeps ANSI escapes (what a remote terminal receives); plain
    text is what tests and logs compare against.
    """
    console = Console(
        record=True,
        width=max(1, width),
        height=max(1, height),
        file=io.StringIO(),
        force_terminal=styled,
        color_system="truecolor" if styled else None,
        legacy_windows=False,
    )
    console.print(renderable, end="")
    text = console.export_text(styles=styled)
    lines = text.split("\n")
    if len(lines) > height:
        lines = lines[:height]
    return "\n".join(line.rstrip() if not styled else line for line in lines)
