"""Unit tests for TextInput and TextArea."""
from __future__ import annotations

from dnd_sheet.tui.events import Key, Tick
from dnd_sheet.tui.textinput import TextArea, TextInput
from dnd_sheet.tui.theme import DEFAULT_THEME


def feed(widget, *names: str) -> None:
    for name in names:
        widget.update(Key(name))


def test_textinput_ignores_keys_until_focused():
    ti = TextInput()
    assert ti.update(Key("a")) is False
    assert ti.value == ""


def test_textinput_insert_and_edit():
    ti = TextInput()
    ti.focus()
    feed(ti, "h", "e", "l", "o", "left", "l")
    assert ti.value == "hello"
    assert ti.pos == 4
    feed(ti, "home", "backspace", "delete")
    assert ti.value == "ello"
    feed(ti, "end", "backspace")
    assert ti.value == "ell"


def test_textinput_char_limit():
    ti = TextInput(char_limit=3)
    ti.focus()
    feed(ti, "1", "2", "3", "4")
    assert ti.value == "123"
    ti.set_value("abcdef")
    assert ti.value == "abc"
    assert ti.pos == 3


def test_textinput_kill_keys():
    ti = TextInput()
    ti.focus()
    ti.set_value("hello world")
    feed(ti, "ctrl+w")
    assert ti.value == "hello "
    feed(ti, "ctrl+u")
    assert ti.value == ""
    ti.set_value("keep this")
    feed(ti, "home", "right", "right", "right", "right", "ctrl+k")
    assert ti.value == "keep"


def test_textinput_unknown_key_not_consumed():
    ti = TextInput()
    ti.focus()
    assert ti.update(Key("f5")) is False


def test_textinput_tick_toggles_cursor():
    ti = TextInput()
    ti.focus()
    assert ti.cursor_visible
    ti.update(Tick())
    assert not ti.cursor_visible
    # any key shows the cursor again
    feed(ti, "x")
    assert ti.cursor_visible


def test_textinput_mask_hides_value():
    ti = TextInput(mask="*")
    ti.focus()
    feed(ti, "a", "b", "c")
    plain = ti.view(DEFAULT_THEME).plain
    assert "abc" not in plain
    assert plain.startswith("***")


def test_textinput_placeholder_when_blurred_and_empty():
    ti = TextInput(placeholder="Email")
    assert ti.view(DEFAULT_THEME).plain == "Email"


def test_textarea_lines():
    ta = TextArea()
    ta.focus()
    feed(ta, "a", "b", "enter", "c")
    assert ta.value == "ab\nc"
    feed(ta, "home", "backspace")
    assert ta.value == "abc"
    assert (ta.row, ta.col) == (0, 2)


def test_textarea_navigation_between_lines():
    ta = TextArea()
    ta.set_value("first\nsecond")
    ta.focus()
    assert (ta.row, ta.col) == (1, 6)
    feed(ta, "up")
    assert (ta.row, ta.col) == (0, 5)
    feed(ta, "right")
    assert (ta.row, ta.col) == (1, 0)
    feed(ta, "left")
    assert (ta.row, ta.col) == (0, 5)
    feed(ta, "delete")
    assert ta.value == "firstsecond"


def test_textarea_char_limit():
    ta = TextArea(char_limit=3)
    ta.focus()
    feed(ta, "a", "b", "c", "d", "enter")
    assert ta.value == "abc"


def test_textarea_view_shows_placeholder():
    ta = TextArea(placeholder="Notes...")
    assert ta.view(DEFAULT_THEME).plain == "Notes..."


def test_textinput_ctrl_w_skips_trailing_spaces():
    ti = TextInput()
    ti.set_value("cast fire bolt  ")
    ti.focus()
    feed(ti, "ctrl+w")
    assert ti.value == "cast fire "
    assert ti.pos == len("cast fire ")


def test_textarea_vertical_moves_keep_column():
    ta = TextArea()
    ta.set_value("long line\nab\nanother")
    ta.focus()
    assert (ta.row, ta.col) == (2, 7)
    feed(ta, "up")
    assert (ta.row, ta.col) == (1, 2)
    feed(ta, "up")
    assert (ta.row, ta.col) == (0, 7)
    feed(ta, "up")
    assert (ta.row, ta.col) == (0, 7)


def test_textarea_kill_keys_stay_on_line():
    ta = TextArea()
    ta.set_value("one\ntwo")
    ta.focus()
    feed(ta, "ctrl+u")
    assert ta.value == "one\n"
    feed(ta, "up", "home", "ctrl+k")
    assert ta.lines == ["", ""]
