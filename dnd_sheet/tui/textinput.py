"""Single-line and multi-line text editors.

Editing runs on a prompt_toolkit ``Buffer``; the widgets here add focus, the
character limit, masking, cursor blink and rich rendering on top.
"""
from __future__ import annotations

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from rich.text import Text

from .events import Key, Tick
from .theme import Theme


class _Editor:
    multiline = False

    def __init__(self, placeholder: str, width: int, char_limit: int):
        self.placeholder = placeholder
        self.width = width
        self.char_limit = char_limit
        self.buffer = Buffer(multiline=self.multiline)
        self.focused = False
        self.cursor_visible = True

    @property
    def value(self) -> str:
        return self.buffer.text

    def set_value(self, value: str) -> None:
        if self.char_limit:
            value = value[: self.char_limit]
        self.buffer.set_document(Document(value, len(value)), bypass_readonly=True)

    def focus(self) -> None:
        self.focused = True
        self.cursor_visible = True

    def blur(self) -> None:
        self.focused = False

    def _full(self) -> bool:
        return bool(self.char_limit) and len(self.buffer.text) >= self.char_limit

    def _edit(self, name: str) -> bool:
        return False

    def update(self, event: object) -> bool:
        """Apply an event; return True if it changed or consumed input."""
        if not self.focused:
            return False
        if isinstance(event, Tick):
            self.cursor_visible = not self.cursor_visible
            return True
        if not isinstance(event, Key):
            return False

        self.cursor_visible = True
        buf = self.buffer
        doc = buf.document
        name = event.name
        if event.is_printable:
            if not self._full():
                buf.insert_text(name)
        elif name in ("backspace", "ctrl+h"):
            buf.delete_before_cursor()
        elif name in ("delete", "ctrl+d"):
            buf.delete()
        elif name in ("home", "ctrl+a"):
            buf.cursor_position += doc.get_start_of_line_position()
        elif name in ("end", "ctrl+e"):
            buf.cursor_position += doc.get_end_of_line_position()
        elif name == "ctrl+u":
            buf.delete_before_cursor(-doc.get_start_of_line_position())
        elif name == "ctrl+k":
            buf.delete(doc.get_end_of_line_position())
        elif name == "ctrl+w":
            start = doc.find_start_of_previous_word(WORD=True)
            if start:
                buf.delete_before_cursor(-start)
        else:
            return self._edit(name)
        return True


class TextInput(_Editor):
    """A single-line editable field with a blinking cursor."""

    def __init__(
        self,
        placeholder: str = "",
        width: int = 40,
        char_limit: int = 0,
        mask: str | None = None,
    ):
        super().__init__(placeholder, width, char_limit)
        self.mask = mask

    @property
    def pos(self) -> int:
        return self.buffer.cursor_position

    def _edit(self, name: str) -> bool:
        if name in ("left", "ctrl+b"):
            self.buffer.cursor_left()
        elif name in ("right", "ctrl+f"):
            self.buffer.cursor_right()
        else:
            return False
        return True

    def view(self, theme: Theme) -> Text:
        value, pos = self.value, self.pos
        if not value and not self.focused:
            return Text(self.placeholder, style=theme.muted)

        shown = self.mask * len(value) if self.mask else value
        offset = max(0, pos - self.width + 1)
        window = shown[offset : offset + self.width]
        cursor_at = pos - offset

        text = Text(style=theme.input)
        if not value and self.placeholder:
            if self.focused and self.cursor_visible:
                text.append(self.placeholder[:1] or " ", style="reverse")
                text.append(self.placeholder[1:], style=theme.muted)
            else:
                text.append(self.placeholder, style=theme.muted)
            return text

        text.append(window[:cursor_at])
        if self.focused and self.cursor_visible:
            text.append(window[cursor_at : cursor_at + 1] or " ", style="reverse")
            text.append(window[cursor_at + 1 :])
        else:
            text.append(window[cursor_at:])
        return text


class TextArea(_Editor):
    """A multi-line editor used for notes and features & traits."""

    multiline = True

    def __init__(
        self,
        placeholder: str = "",
        width: int = 50,
        height: int = 8,
        char_limit: int = 5000,
    ):
        super().__init__(placeholder, width, char_limit)
        self.height = height

    @property
    def lines(self) -> list[str]:
        return list(self.buffer.document.lines)

    @property
    def row(self) -> int:
        return self.buffer.document.cursor_position_row

    @property
    def col(self) -> int:
        return self.buffer.document.cursor_position_col

    def _edit(self, name: str) -> bool:
        buf = self.buffer
        doc = buf.document
        if name == "enter":
            if not self._full():
                buf.newline(copy_margin=False)
        elif name == "left":
            # wraps onto the end of the previous line
            if doc.cursor_position_col == 0 and not doc.on_first_line:
                buf.cursor_position -= 1
            else:
                buf.cursor_left()
        elif name == "right":
            if doc.is_cursor_at_the_end_of_line and not doc.on_last_line:
                buf.cursor_position += 1
            else:
                buf.cursor_right()
        elif name == "up":
            buf.cursor_up()
        elif name == "down":
            buf.cursor_down()
        else:
            return False
        return True

    def view(self, theme: Theme) -> Text:
        if self.value == "" and self.placeholder and not self.focused:
            return Text(self.placeholder, style=theme.muted)

        lines, row, col = self.lines, self.row, self.col
        top = max(0, row - self.height + 1)
        text = Text(style=theme.input)
        for i in range(top, min(top + self.height, len(lines))):
            line = lines[i]
            if i == row and self.focused and self.cursor_visible:
                text.append(line[:col])
                text.append(line[col : col + 1] or " ", style="reverse")
                text.append(line[col + 1 :])
            else:
                text.append(line)
            if i < len(lines) - 1:
                text.append("\n")
        return text
