"""Unit tests for ModalForm."""
from __future__ import annotations

from dnd_sheet.tui.components import render_frame
from dnd_sheet.tui.events import Key, ModalCancel, ModalSave, Tick
from dnd_sheet.tui.modal import Field, FieldType, ModalForm
from dnd_sheet.tui.theme import DEFAULT_THEME


def make_form() -> ModalForm:
    return ModalForm(
        "Add Spell",
        [
            Field("name", "Spell Name", required=True),
            Field("level", "Level", FieldType.SELECT, options=["0", "1", "2"]),
            Field("ritual", "Ritual", FieldType.CHECKBOX),
        ],
        DEFAULT_THEME,
    )


def press(form: ModalForm, *names: str):
    result = None
    for name in names:
        result = form.update(Key(name))
    return result


def test_modal_initial_focus():
    form = make_form()
    assert form.visible
    assert form.cursor == 0
    assert form.inputs[0].focused


def test_modal_refuses_save_without_required_value():
    form = make_form()
    assert press(form, "ctrl+s") is None
    assert form.visible


def test_modal_save_returns_values_and_hides():
    form = make_form()
    result = press(form, "Z", "a", "p", "ctrl+s")
    assert isinstance(result, ModalSave)
    assert result.values == {"name": "Zap", "level": "0", "ritual": "false"}
    assert not form.visible


def test_modal_cancel():
    form = make_form()
    assert isinstance(press(form, "esc"), ModalCancel)
    assert not form.visible


def test_modal_focus_only_on_text_fields():
    form = make_form()
    press(form, "tab")
    assert form.cursor == 1
    assert not any(ti.focused for ti in form.inputs)
    press(form, "down")
    assert form.cursor == 2
    press(form, "tab")
    assert form.cursor == 0
    assert form.inputs[0].focused


def test_modal_shift_tab_wraps_backwards():
    form = make_form()
    press(form, "shift+tab")
    assert form.cursor == 2
    press(form, "up")
    assert form.cursor == 1


def test_modal_select_cycles_both_ways():
    form = make_form()
    press(form, "tab", "right")
    assert form.values()["level"] == "1"
    press(form, "enter")
    assert form.values()["level"] == "2"
    press(form, "right")
    assert form.values()["level"] == "0"
    press(form, "left")
    assert form.values()["level"] == "2"


def test_modal_checkbox_toggles():
    form = make_form()
    press(form, "shift+tab", " ")
    assert form.values()["ritual"] == "true"
    press(form, "enter")
    assert form.values()["ritual"] == "false"


def test_modal_text_keys_do_not_reach_other_fields():
    form = make_form()
    press(form, "tab", "x")
    assert form.values()["name"] == ""


def test_modal_prefilled_values():
    form = ModalForm(
        "Edit",
        [
            Field("size", "Size", FieldType.SELECT, "Large", options=["Small", "Medium", "Large"]),
            Field("inspired", "Inspired", FieldType.CHECKBOX, "yes"),
            Field("age", "Age", value="42"),
        ],
        DEFAULT_THEME,
    )
    assert form.values() == {"size": "Large", "inspired": "true", "age": "42"}
    form.set_value("size", "Small")
    form.set_value("age", "43")
    form.set_value("inspired", "false")
    assert form.values() == {"size": "Small", "inspired": "false", "age": "43"}


def test_modal_show_resets_cursor():
    form = make_form()
    press(form, "tab", "tab", "esc")
    form.show()
    assert form.visible
    assert form.cursor == 0
    assert form.inputs[0].focused


def test_modal_set_size():
    form = make_form()
    form.set_size(100, 50)
    assert (form.width, form.height) == (60, 17)
    form.set_size(50, 20)
    assert (form.width, form.height) == (40, 14)


def test_modal_ignores_input_when_hidden():
    form = make_form()
    form.hide()
    assert form.update(Key("ctrl+s")) is None
    assert form.update(Tick()) is None


def test_modal_view_lists_labels():
    form = make_form()
    press(form, "F")
    text = render_frame(form.view(), 70, 20, styled=False)
    assert "Add Spell" in text
    assert "Spell Name *" in text
    assert "◀ 0 ▶" in text
    assert "[ ]" in text
    assert "ctrl+s: save" in text
