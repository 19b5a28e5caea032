"""Scrollable, paged table with a cursor and per-row payload."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rich.text import Text

from .events import Key, TableDelete, TableEdit, TableSelect
from .theme import Theme


@dataclass(frozen=True)
class TableColumn:
    """A column definition.

    ``width`` of 0 makes the column flexible; ``min_width`` then raises the
    share it gets from the remaining width.
    """

    title: str
    width: int = 0
    min_width: int = 0


@dataclass(frozen=True)
class TableRow:
    id: str
    cells: list[str] = field(default_factory=list)
    data: Any = None


def truncate_or_pad(s: str, width: int) -> str:
    """Return ``s`` cut or right-padded to exactly ``width`` characters."""
    if width <= 0:
        return ""
    if len(s) > width:
        if width > 3:
            return s[: width - 3] + "..."
        return s[:width]
    return s + " " * (width - len(s))


class ScrollableTable:
    """Cursor + viewport list used by every tabular view.

    Invariants kept after every mutation: with rows present,
    ``0 <= cursor < len(rows)`` and ``viewport <= cursor < viewport + visible_rows``;
    ``0 <= viewport <= max(0, len(rows) - visible_rows)``.
    """

    def __init__(
        self,
        columns: list[TableColumn],
        theme: Theme,
        visible_rows: int = 10,
        width: int = 80,
        empty_message: str = "No items",
    ):
        self.columns = list(columns)
        self.theme = theme
        self.rows: list[TableRow] = []
        self.cursor = 0
        self.viewport = 0
        self.visible_rows = max(1, visible_rows)
        self.focused = False
        self.width = width
        self.empty_message = empty_message

    # ── Row management ─────────────────────────────────────────────

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def set_rows(self, rows: list[TableRow]) -> None:
        self.rows = list(rows)
        if self.cursor >= len(self.rows):
            self.cursor = max(0, len(self.rows) - 1)
        self._adjust_viewport()

    def add_row(self, row: TableRow) -> None:
        self.rows.append(row)
        self._adjust_viewport()

    def remove_row(self, row_id: str) -> None:
        for i, row in enumerate(self.rows):
            if row.id == row_id:
                del self.rows[i]
                if self.cursor >= len(self.rows) and self.cursor > 0:
                    self.cursor -= 1
                self._adjust_viewport()
                return

    def update_row(self, row_id: str, new_row: TableRow) -> None:
        for i, row in enumerate(self.rows):
            if row.id == row_id:
                self.rows[i] = new_row
                return

    def selected_row(self) -> TableRow | None:
        if not self.rows or not 0 <= self.cursor < len(self.rows):
            return None
        return self.rows[self.cursor]

    # ── Geometry / focus ───────────────────────────────────────────

    def set_visible_rows(self, n: int) -> None:
        self.visible_rows = max(1, n)
        self._adjust_viewport()

    def set_width(self, width: int) -> None:
        self.width = width

    def set_focused(self, focused: bool) -> None:
        self.focused = focused

    def _adjust_viewport(self) -> None:
        if self.cursor < self.viewport:
            self.viewport = self.cursor
        if self.cursor >= self.viewport + self.visible_rows:
            self.viewport = self.cursor - self.visible_rows + 1
        max_viewport = max(0, len(self.rows) - self.visible_rows)
        self.viewport = min(max(self.viewport, 0), max_viewport)

    # ── Input ──────────────────────────────────────────────────────

    def update(self, event: object) -> TableSelect | TableEdit | TableDelete | None:
        """Handle a key while focused; return a row intent when one fires."""
        if not self.focused or not isinstance(event, Key):
            return None

        last = len(self.rows) - 1
        name = event.name
        if name in ("up", "k"):
            if self.cursor > 0:
                self.cursor -= 1
        elif name in ("down", "j"):
            if self.cursor < last:
                self.cursor += 1
        elif name == "pgup":
            self.cursor = max(0, self.cursor - self.visible_rows)
        elif name == "pgdown":
            self.cursor = max(0, min(last, self.cursor + self.visible_rows))
        elif name in ("home", "g"):
            self.cursor = 0
        elif name in ("end", "G"):
            self.cursor = max(0, last)
        else:
            row = self.selected_row()
            if row is None:
                return None
            if name == "enter":
                return TableSelect(row=row)
            if name == "e":
                return TableEdit(row=row)
            if name in ("d", "delete"):
                return TableDelete(row=row)
            return None

        self._adjust_viewport()
        return None

    # ── Rendering ──────────────────────────────────────────────────

    def column_widths(self) -> list[int]:
        widths = [0] * len(self.columns)
        fixed = 0
        flex_count = 0
        for i, col in enumerate(self.columns):
            if col.width > 0:
                widths[i] = col.width
                fixed += col.width + 1
            else:
                flex_count += 1

        if flex_count:
            remaining = self.width - fixed - 2
            flex_width = max(10, remaining // flex_count)
            for i, col in enumerate(self.columns):
                if col.width == 0:
                    widths[i] = max(flex_width, col.min_width)
        return widths

    def scroll_indicator(self) -> str:
        total = len(self.rows)
        start = self.viewport + 1
        end = min(self.viewport + self.visible_rows, total)
        return f"  ↑↓ {start}-{end} of {total}"

    def view(self) -> Text:
        theme = self.theme
        widths = self.column_widths()
        out = Text()

        header = " ".join(
            truncate_or_pad(col.title, widths[i]) for i, col in enumerate(self.columns)
        )
        out.append(header, style=theme.header)
        out.append("\n")
        out.append("─".join("─" * w for w in widths), style=theme.muted)
        out.append("\n")

        if not self.rows:
            out.append(self.empty_message, style=theme.muted)
            out.append("\n")
        else:
            end = min(self.viewport + self.visible_rows, len(self.rows))
            for i in range(self.viewport, end):
                row = self.rows[i]
                cells = [
                    truncate_or_pad(row.cells[j] if j < len(row.cells) else "", w)
                    for j, w in enumerate(widths)
                ]
                style = theme.selected if self.focused and i == self.cursor else theme.base
                out.append(" ".join(cells), style=style)
                out.append("\n")
            out.append("\n" * (self.visible_rows - (end - self.viewport)))

        if len(self.rows) > self.visible_rows:
            out.append(self.scroll_indicator(), style=theme.muted)
        return out
