"""Modal form: an ordered set of typed fields with a save/cancel lifecycle."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .events import Key, ModalCancel, ModalSave, Tick
from .textinput import TextInput
from .theme import Theme

TRUTHY = ("true", "1", "yes")


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"


@dataclass
class Field:
    """One input of a ModalForm."""

    key: str
    label: str
    type: FieldType = FieldType.TEXT
    value: str = ""
    options: list[str] = field(default_factory=list)
    required: bool = False
    placeholder: str = ""
    width: int = 0

    @property
    def is_textual(self) -> bool:
        return self.type in (FieldType.TEXT, FieldType.NUMBER)


class ModalForm:
    """Focus-cycling form shown as a centered overlay.

    Every field owns a TextInput (used only by text/number fields), a select
    index and a checkbox flag, so switching field types never loses state.
    ``update`` returns ``ModalSave``/``ModalCancel`` when the form closes.
    """

    def __init__(self, title: str, fields: list[Field], theme: Theme):
        self.title = title
        self.fields = list(fields)
        self.theme = theme
        self.cursor = 0
        self.visible = True
        self.width = 60
        self.height = 20
        self.inputs: list[TextInput] = []
        self.select_index: list[int] = [0] * len(self.fields)
        self.checked: list[bool] = [False] * len(self.fields)

        for i, f in enumerate(self.fields):
            ti = TextInput(placeholder=f.placeholder, width=f.width or 40)
            ti.set_value(f.value)
            self.inputs.append(ti)
            if f.type is FieldType.SELECT and f.value in f.options:
                self.select_index[i] = f.options.index(f.value)
            if f.type is FieldType.CHECKBOX:
                self.checked[i] = f.value in TRUTHY
        self._focus_current()

    # ── Lifecycle ──────────────────────────────────────────────────

    def show(self) -> None:
        self.visible = True
        for ti in self.inputs:
            ti.blur()
        self.cursor = 0
        self._focus_current()

    def hide(self) -> None:
        self.visible = False
        for ti in self.inputs:
            ti.blur()

    def set_size(self, width: int, height: int) -> None:
        self.width = min(60, width - 10)
        self.height = min(len(self.fields) * 3 + 8, height - 6)

    def values(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for i, f in enumerate(self.fields):
            if f.is_textual:
                out[f.key] = self.inputs[i].value
            elif f.type is FieldType.SELECT:
                if self.select_index[i] < len(f.options):
                    out[f.key] = f.options[self.select_index[i]]
            else:
                out[f.key] = "true" if self.checked[i] else "false"
        return out

    def set_value(self, key: str, value: str) -> None:
        for i, f in enumerate(self.fields):
            if f.key != key:
                continue
            self.inputs[i].set_value(value)
            if f.type is FieldType.SELECT and value in f.options:
                self.select_index[i] = f.options.index(value)
            if f.type is FieldType.CHECKBOX:
                self.checked[i] = value in TRUTHY
            return

    # ── Input ──────────────────────────────────────────────────────

    def _focus_current(self) -> None:
        if self.fields and self.fields[self.cursor].is_textual:
            self.inputs[self.cursor].focus()

    def _move(self, step: int) -> None:
        self.inputs[self.cursor].blur()
        self.cursor = (self.cursor + step) % len(self.fields)
        self._focus_current()

    def _cycle(self, step: int) -> None:
        opts = self.fields[self.cursor].options
        if opts:
            self.select_index[self.cursor] = (self.select_index[self.cursor] + step) % len(opts)

    def update(self, event: object) -> ModalSave | ModalCancel | None:
        if not self.visible or not self.fields:
            return None
        if isinstance(event, Tick):
            self.inputs[self.cursor].update(event)
            return None
        if not isinstance(event, Key):
            return None

        current = self.fields[self.cursor]
        name = event.name
        if name == "esc":
            self.hide()
            return ModalCancel()
        if name == "ctrl+s":
            for i, f in enumerate(self.fields):
                if f.required and self.inputs[i].value == "":
                    return None
            values = self.values()
            self.hide()
            return ModalSave(values=values)
        if name in ("tab", "down"):
            self._move(1)
            return None
        if name in ("shift+tab", "up"):
            self._move(-1)
            return None

        if current.type is FieldType.SELECT:
            if name == "left":
                self._cycle(-1)
            elif name in ("right", "enter"):
                self._cycle(1)
            return None
        if current.type is FieldType.CHECKBOX:
            if name in (" ", "enter"):
                self.checked[self.cursor] = not self.checked[self.cursor]
            return None

        self.inputs[self.cursor].update(event)
        return None

    # ── Rendering ──────────────────────────────────────────────────

    def view(self) -> Panel:
        theme = self.theme
        grid = Table.grid(padding=(0, 1))
        grid.add_column(justify="right", width=15)
        grid.add_column()

        for i, f in enumerate(self.fields):
            focused = i == self.cursor
            label = f.label + (" *" if f.required else "")
            if f.is_textual:
                value = self.inputs[i].view(theme)
                if focused:
                    value.stylize(theme.focused_input)
            elif f.type is FieldType.SELECT:
                opts = f.options
                idx = self.select_index[i]
                shown = f"◀ {opts[idx]} ▶" if opts and idx < len(opts) else "(none)"
                value = Text(shown, style=theme.focused_input if focused else theme.input)
            else:
                mark = "[✓]" if self.checked[i] else "[ ]"
                value = Text(mark, style=theme.focused_button if focused else theme.button)
            grid.add_row(Text(label, style=theme.base), value)
            grid.add_row("", "")

        body = Table.grid()
        body.add_row(Text(self.title, style=theme.title))
        body.add_row("")
        body.add_row(grid)
        body.add_row(Text("tab: next field • ctrl+s: save • esc: cancel", style=theme.help))
        return Panel(body, border_style=theme.highlight_border, width=max(20, self.width), padding=(1, 2))
