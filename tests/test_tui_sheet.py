"""Tests for the character sheet tab/mode state machine."""
from __future__ import annotations

import pytest

from dnd_sheet.models import Character
from dnd_sheet.store import StoreError
from dnd_sheet.tui.components import render_frame
from dnd_sheet.tui.events import CharacterSelected, CharacterUpdated, ClearStatus, Key, Resize
from dnd_sheet.tui.screens.home import HomeScreen
from dnd_sheet.tui.screens.sheet import SheetScreen
from dnd_sheet.tui.screens.sheet_forms import SheetMode
from dnd_sheet.tui.screens.sheet_views import (
    BACKGROUND,
    COMBAT,
    CORE,
    FEATURES,
    INVENTORY,
    NOTES,
    SPELLS,
)


def goto(driver, tab: int) -> SheetScreen:
    screen = driver.screen
    while screen.tab != tab:
        driver.press("tab")
    return screen


def open_sheet(driver, store, character_id: str) -> SheetScreen:
    driver.send(CharacterSelected(character=store.get_character(character_id)))
    return driver.screen


# ── Tabs ───────────────────────────────────────────────────────────


def test_sheet_opens_on_core_with_skills_focused(sheet):
    screen = sheet.screen
    assert isinstance(screen, SheetScreen)
    assert screen.tab == CORE
    assert screen.mode is SheetMode.VIEW
    assert screen.skills_table.focused
    assert not screen.attacks_table.focused


def test_sheet_tab_wraps_both_ways(sheet):
    screen = sheet.screen
    sheet.press("shift+tab")
    assert screen.tab == NOTES
    sheet.press("tab")
    assert screen.tab == CORE
    sheet.press("left")
    assert screen.tab == NOTES
    sheet.press("l")
    assert screen.tab == CORE


def test_sheet_tab_switch_moves_table_focus(sheet):
    screen = sheet.screen
    sheet.press("tab")
    assert screen.attacks_table.focused
    assert not screen.skills_table.focused
    sheet.press("2")
    assert screen.actions_table.focused
    assert not screen.attacks_table.focused


def test_sheet_navigation_drives_focused_table(sheet):
    screen = sheet.screen
    sheet.press("j", "j")
    assert screen.skills_table.cursor == 2
    sheet.press("G")
    assert screen.skills_table.cursor == screen.skills_table.row_count - 1


def test_sheet_back_returns_home(sheet):
    sheet.press("q")
    assert isinstance(sheet.screen, HomeScreen)


def test_sheet_help_overlay(sheet):
    screen = sheet.screen
    sheet.press("?")
    assert screen.mode is SheetMode.HELP
    sheet.press("tab", "x")
    assert screen.mode is SheetMode.HELP
    assert screen.tab == CORE
    sheet.press("esc")
    assert screen.mode is SheetMode.VIEW
    assert isinstance(sheet.screen, SheetScreen)


def test_sheet_roll_shows_status(sheet):
    screen = sheet.screen
    delayed = sheet.press("r")
    assert screen.status.startswith("Rolled d20: ")
    assert 1 <= int(screen.status.rsplit(" ", 1)[1]) <= 20
    assert not screen.status_error
    assert [c.label for c in delayed] == ["clear-status"]


# ── HP editing ─────────────────────────────────────────────────────


def test_damage_floors_at_zero(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("-", "4", "0")
    assert screen.mode is SheetMode.EDIT_DAMAGE

    commands = sheet.handle(Key("enter"))
    assert [c.label for c in commands] == ["update-hp"]
    assert screen.pending
    assert screen.mode is SheetMode.EDIT_DAMAGE
    # A second enter while the write is in flight is ignored.
    assert sheet.handle(Key("enter")) == []

    sheet.run(commands)
    assert screen.mode is SheetMode.VIEW
    assert not screen.pending
    assert screen.character.current_hit_points == 0
    assert store.get_character(character.id).current_hit_points == 0


def test_heal_ceils_at_max(home, store, character):
    store.update_hit_points(character.id, 10, 0)
    screen = open_sheet(home, store, character.id)
    goto(home, COMBAT)
    home.press("+", "9", "9", "enter")
    assert screen.character.current_hit_points == character.max_hit_points
    assert screen.mode is SheetMode.VIEW


def test_set_hp_clamps_negative_to_zero(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("e")
    assert screen.mode is SheetMode.EDIT_HP
    assert screen.hp_input.value == str(character.current_hit_points)
    sheet.press("backspace", "backspace", "-", "5", "enter")
    assert screen.character.current_hit_points == 0


@pytest.mark.parametrize("typed,expected", [("12abc", 12), ("abc", 0), ("500", 27)])
def test_set_hp_parses_leading_integer(sheet, typed, expected):
    screen = goto(sheet, COMBAT)
    sheet.press("e", "backspace", "backspace")
    sheet.type(typed)
    sheet.press("enter")
    assert screen.character.current_hit_points == expected


def test_negative_heal_is_treated_as_zero(sheet, character):
    screen = goto(sheet, COMBAT)
    sheet.press("=", "-", "3", "enter")
    assert screen.character.current_hit_points == character.max_hit_points


def test_hp_edit_escape_cancels(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("-", "5")
    assert sheet.handle(Key("esc")) == []
    assert screen.mode is SheetMode.VIEW
    assert store.get_character(character.id).current_hit_points == character.current_hit_points


def test_hp_failure_leaves_mode_with_error(sheet, store, monkeypatch):
    def boom(*args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "update_hit_points", boom)
    screen = goto(sheet, COMBAT)
    delayed = sheet.press("-", "3", "enter")

    assert screen.mode is SheetMode.VIEW
    assert not screen.pending
    assert screen.status == "Failed to update HP"
    assert screen.status_error
    assert [c.label for c in delayed] == ["clear-status"]


def test_hp_line_shows_inline_input(sheet):
    goto(sheet, COMBAT)
    sheet.press("-", "7")
    frame = render_frame(sheet.router.view(), 100, 40, styled=False)
    assert "HP: 27/27 -7" in frame


# ── Status lifecycle ───────────────────────────────────────────────


def test_status_clear_may_wipe_newer_message(sheet):
    screen = sheet.screen
    first = sheet.press("r")
    sheet.press("r")
    assert screen.status.startswith("Rolled d20")

    # The first clear fires after the second message arrived.
    sheet.send(first[0].execute())
    assert screen.status == ""
    assert not screen.status_error


def test_clear_status_event(sheet):
    screen = sheet.screen
    sheet.press("r")
    sheet.send(ClearStatus())
    assert screen.status == ""


# ── Spells ─────────────────────────────────────────────────────────


def test_spell_filter_toggles_back_to_all(sheet):
    screen = goto(sheet, SPELLS)
    assert screen.spell_filter is None
    assert len(screen.spells) == 6

    sheet.press("1")
    assert screen.spell_filter == 1
    assert sorted(s.name for s in screen.spells) == ["Magic Missile", "Shield"]
    assert screen.spells_table.row_count == 2

    sheet.press("1")
    assert screen.spell_filter is None
    assert len(screen.spells) == 6

    sheet.press("3", "0")
    assert screen.spell_filter == 0
    assert {s.level for s in screen.spells} == {0}


def test_add_spell_defaults_to_filter_level(sheet, store, character):
    screen = goto(sheet, SPELLS)
    sheet.press("2", "a")
    assert screen.mode is SheetMode.ADD_SPELL
    assert screen.modal.values()["level"] == "2"

    sheet.type("Hold Person")
    delayed = sheet.press("ctrl+s")

    assert screen.mode is SheetMode.VIEW
    assert screen.modal is None
    assert screen.status == "Spell added"
    assert "Hold Person" in [s.name for s in screen.spells]
    assert {s.level for s in screen.spells} == {2}
    assert [c.label for c in delayed] == ["clear-status"]
    assert "Hold Person" in [s.name for s in store.list_spells(character.id, 2)]


def test_add_spell_requires_name(sheet):
    screen = goto(sheet, SPELLS)
    sheet.press("a", "ctrl+s")
    assert screen.mode is SheetMode.ADD_SPELL
    assert screen.modal.visible


def test_delete_spell(sheet, store, character):
    screen = goto(sheet, SPELLS)
    assert screen.spells_table.selected_row().data.name == "Fire Bolt"
    sheet.press("d")
    assert screen.status == "Spell deleted"
    names = [s.name for s in store.list_spells(character.id)]
    assert "Fire Bolt" not in names
    assert len(screen.spells) == 5


def test_toggle_prepared(sheet, store, character):
    screen = goto(sheet, SPELLS)
    sheet.press("p")
    assert screen.status == "Fire Bolt prepared"
    assert screen.spells[0].is_prepared
    sheet.press(" ")
    assert screen.status == "Fire Bolt unprepared"
    assert not store.list_spells(character.id, 0)[0].is_prepared


# ── Combat lists ───────────────────────────────────────────────────


def test_delete_attack(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("d")
    assert screen.status == "Attack deleted"
    assert [a.name for a in screen.attacks] == ["Fire Bolt"]
    assert [a.name for a in store.list_attacks(character.id)] == ["Fire Bolt"]


def test_add_attack(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("a")
    assert screen.mode is SheetMode.ADD_ATTACK
    sheet.type("Dagger")
    sheet.press("tab", "+", "4", "ctrl+s")

    assert screen.status == "Attack added"
    dagger = store.list_attacks(character.id)[-1]
    assert (dagger.name, dagger.attack_bonus, dagger.sort_order) == ("Dagger", 4, 2)
    assert dagger.damage_type == "Slashing"


def test_add_action_on_actions_tab(sheet, store, character):
    screen = goto(sheet, COMBAT)
    sheet.press("2", "a")
    assert screen.mode is SheetMode.ADD_ACTION
    sheet.type("Dash")
    sheet.press("ctrl+s")
    assert screen.status == "Action added"
    assert [a.name for a in screen.actions] == ["Arcane Recovery", "Dash"]


def test_modal_cancel_discards(sheet):
    screen = goto(sheet, COMBAT)
    sheet.press("a", "X", "esc")
    assert screen.mode is SheetMode.VIEW
    assert screen.modal is None
    assert len(screen.attacks) == 2


def test_modal_swallows_sheet_keys(sheet):
    screen = goto(sheet, COMBAT)
    sheet.press("a", "q", "tab")
    assert isinstance(sheet.screen, SheetScreen)
    assert screen.tab == COMBAT
    assert screen.modal.values()["name"] == "q"


# ── Inventory ──────────────────────────────────────────────────────


def test_inventory_space_toggles_equipped_and_attuned(sheet, store, character):
    screen = goto(sheet, INVENTORY)
    sheet.press(" ")
    assert screen.status == "Spellbook equipped"
    assert store.list_inventory(character.id)[0].is_equipped

    sheet.press("2", " ")
    assert screen.status == "Cloak of Protection unattuned"
    assert not screen.magic_items[0].is_attuned


def test_inventory_add_and_delete_item(sheet, store, character):
    screen = goto(sheet, INVENTORY)
    sheet.press("a")
    assert screen.mode is SheetMode.ADD_ITEM
    sheet.type("Rope")
    sheet.press("ctrl+s")
    assert [i.name for i in screen.inventory] == ["Spellbook", "Quarterstaff", "Rope"]

    sheet.press("G", "d")
    assert screen.status == "Item deleted"
    assert [i.name for i in store.list_inventory(character.id)] == ["Spellbook", "Quarterstaff"]


def test_inventory_add_magic_item(sheet):
    screen = goto(sheet, INVENTORY)
    sheet.press("2", "a")
    assert screen.mode is SheetMode.ADD_MAGIC_ITEM
    sheet.type("Bag of Holding")
    sheet.press("ctrl+s")
    assert screen.status == "Magic item added"
    assert [m.name for m in screen.magic_items][-1] == "Bag of Holding"


# ── Features ───────────────────────────────────────────────────────


def test_feature_filter_toggle(sheet):
    screen = goto(sheet, FEATURES)
    assert len(screen.features) == 4
    sheet.press("2")
    assert screen.feature_filter == "race"
    assert [f.name for f in screen.features] == ["Darkvision"]
    sheet.press("1")
    assert screen.feature_filter == "class"
    assert len(screen.features) == 2
    sheet.press("1")
    assert screen.feature_filter is None
    assert len(screen.features) == 4


# ── Background ─────────────────────────────────────────────────────


def test_background_edit_saves_details_and_alignment(sheet, store, character):
    screen = goto(sheet, BACKGROUND)
    sheet.press("e")
    assert screen.mode is SheetMode.EDIT_BACKGROUND
    values = screen.modal.values()
    assert values["size"] == "Medium"
    assert values["alignment"] == "Neutral Good"
    assert values["ideals"] == "Knowledge is the path to power."

    screen.modal.set_value("faith", "Corellon")
    screen.modal.set_value("alignment", "Chaotic Good")
    sheet.press("ctrl+s")

    assert screen.status == "Background saved"
    assert screen.details.faith_deity == "Corellon"
    assert screen.character.alignment == "Chaotic Good"
    stored = store.get_details(character.id)
    assert stored.faith_deity == "Corellon"
    assert stored.ideals == "Knowledge is the path to power."
    assert store.get_character(character.id).alignment == "Chaotic Good"


def test_background_edit_creates_missing_details(home, store, user):
    bare = store.create_character(Character(user_id=user.id, name="Pip", class_="Rogue", race="Halfling"))
    screen = open_sheet(home, store, bare.id)
    assert screen.details is None

    goto(home, BACKGROUND)
    home.press("e")
    screen.modal.set_value("eyes", "Green")
    home.press("ctrl+s")

    assert screen.status == "Background saved"
    assert store.get_details(bare.id).eyes == "Green"


# ── Notes ──────────────────────────────────────────────────────────


def test_notes_edit_saves_on_ctrl_s(sheet, store, character):
    screen = goto(sheet, NOTES)
    sheet.press("e")
    assert screen.mode is SheetMode.EDIT_NOTES
    assert screen.notes_area.value == character.notes

    sheet.press("!")
    commands = sheet.handle(Key("ctrl+s"))
    assert screen.pending
    assert sheet.handle(Key("ctrl+s")) == []
    sheet.run(commands)

    assert screen.mode is SheetMode.VIEW
    assert screen.character.notes == character.notes + "!"
    assert store.get_character(character.id).features_traits == character.features_traits


def test_features_edit_saves(sheet, store, character):
    screen = goto(sheet, NOTES)
    sheet.press("f", "enter", "X", "ctrl+s")
    assert screen.mode is SheetMode.VIEW
    assert store.get_character(character.id).features_traits == character.features_traits + "\nX"
    assert store.get_character(character.id).notes == character.notes


def test_notes_escape_discards(sheet, store, character):
    screen = goto(sheet, NOTES)
    sheet.press("e", "Z", "esc")
    assert screen.mode is SheetMode.VIEW
    assert store.get_character(character.id).notes == character.notes


# ── Refresh / geometry / rendering ─────────────────────────────────


def test_character_updated_keeps_tab(sheet, store, character):
    screen = goto(sheet, SPELLS)
    updated = store.update_hit_points(character.id, 5, 0)
    sheet.send(CharacterUpdated(character=updated))
    assert screen.tab == SPELLS
    assert screen.character.current_hit_points == 5


def test_resize_shrinks_table_windows(sheet):
    screen = sheet.screen
    sheet.send(Resize(width=80, height=20))
    assert screen.attacks_table.visible_rows == 3
    assert screen.skills_table.visible_rows == 8
    sheet.send(Resize(width=120, height=60))
    assert screen.attacks_table.visible_rows == 5
    assert screen.attacks_table.width == 120


@pytest.mark.parametrize(
    "tab,expected",
    [
        (CORE, "Ability Scores"),
        (COMBAT, "Quarterstaff"),
        (SPELLS, "Save DC: 14"),
        (INVENTORY, "Spellbook"),
        (FEATURES, "Arcane Recovery"),
        (BACKGROUND, "Knowledge is the path"),
        (NOTES, "Candlekeep"),
    ],
)
def test_sheet_tab_renders(sheet, tab, expected):
    sheet.send(Resize(width=120, height=60))
    goto(sheet, tab)
    frame = render_frame(sheet.router.view(), 120, 60, styled=False)
    assert "Elara Moonwhisper - Level 5 Elf Wizard" in frame
    assert expected in frame


def test_sheet_renders_within_default_frame(sheet):
    for _ in range(7):
        frame = render_frame(sheet.router.view(), 80, 24, styled=False)
        assert len(frame.splitlines()) <= 24
        sheet.press("tab")
