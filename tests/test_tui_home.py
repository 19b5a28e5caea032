"""Tests for the character list screen."""
from __future__ import annotations

from dnd_sheet.models import Character
from dnd_sheet.store import StoreError
from dnd_sheet.tui.components import render_frame
from dnd_sheet.tui.events import CharacterDeleted, CharactersLoaded, Key
from dnd_sheet.tui.screens.create import CreateScreen
from dnd_sheet.tui.screens.home import HomeScreen
from dnd_sheet.tui.screens.sheet import SheetScreen
from dnd_sheet.tui.screens.welcome import WelcomeScreen


def add_character(store, user, name: str) -> Character:
    return store.create_character(
        Character(user_id=user.id, name=name, class_="Fighter", race="Human")
    )


def test_home_loads_characters(character, home):
    screen = home.screen
    assert isinstance(screen, HomeScreen)
    assert screen.rows() == ["Elara Moonwhisper - Level 5 Elf Wizard", "+ Create New Character"]
    assert screen.selected_index == 0


def test_home_empty_list(home):
    screen = home.screen
    assert screen.characters == []
    assert screen.rows() == ["+ Create New Character"]
    frame = render_frame(home.router.view(), 80, 24, styled=False)
    assert "No characters yet" in frame


def test_home_cursor_stops_at_create_row(character, home):
    screen = home.screen
    home.press("down", "down", "down")
    assert screen.selected_index == 1
    home.press("up", "up", "k")
    assert screen.selected_index == 0


def test_home_enter_on_create_row(home):
    home.press("enter")
    assert isinstance(home.screen, CreateScreen)


def test_home_enter_on_character(character, home):
    home.press("enter")
    assert isinstance(home.screen, SheetScreen)
    assert home.screen.character.id == character.id


def test_home_delete_cancelled(character, home):
    screen = home.screen
    home.press("d")
    assert screen.confirm_delete
    frame = render_frame(home.router.view(), 80, 24, styled=False)
    assert "Delete Elara Moonwhisper? This cannot be undone. (y/n)" in frame

    home.press("n")
    assert not screen.confirm_delete
    assert len(screen.characters) == 1


def test_home_delete_confirmed(store, user, character, home):
    add_character(store, user, "Brom")
    home.send(CharactersLoaded(characters=store.list_characters(user.id)))

    screen = home.screen
    names = [c.name for c in screen.characters]
    victim = names.index("Elara Moonwhisper")
    screen.selected_index = victim

    home.press("d")
    commands = home.handle(Key("y"))
    assert [c.label for c in commands] == ["delete-character"]
    deleted = commands[0].execute()
    assert deleted == CharacterDeleted(character_id=character.id)
    home.run(home.router.handle(deleted))

    screen = home.screen
    assert isinstance(screen, HomeScreen)
    assert [c.name for c in screen.characters] == ["Brom"]
    assert home.router.session.characters == screen.characters


def test_home_delete_ignored_on_create_row(home):
    screen = home.screen
    home.press("d")
    assert not screen.confirm_delete


def test_home_delete_failure_shows_error(monkeypatch, store, character, home):
    def fail(character_id):
        raise StoreError("disk on fire")

    monkeypatch.setattr(store, "delete_character", fail)
    home.press("d", "y")

    screen = home.screen
    assert isinstance(screen, HomeScreen)
    assert screen.error == "Error deleting character: disk on fire"
    frame = render_frame(home.router.view(), 80, 24, styled=False)
    assert "Error: Error deleting character: disk on fire" in frame


def test_home_reload_keeps_cursor_on_create_row(character, home):
    screen = home.screen
    home.press("down")
    assert screen.selected_index == 1

    home.send(CharactersLoaded(characters=[character]))
    assert screen.selected_index == 1
    assert screen._selected() is None

    home.press("enter")
    assert isinstance(home.screen, CreateScreen)


def test_home_reload_with_fewer_characters_lands_on_create_row(store, user, character, home):
    screen = home.screen
    extra = add_character(store, user, "Brom")
    home.send(CharactersLoaded(characters=[character, extra]))
    home.press("down", "down")
    assert screen.selected_index == 2

    home.send(CharactersLoaded(characters=[extra]))
    assert screen.selected_index == 1
    assert screen._selected() is None


def test_home_reload_to_empty_selects_create_row(character, home):
    screen = home.screen
    home.press("down")
    home.send(CharactersLoaded(characters=[]))
    assert screen.selected_index == 0
    assert screen.rows() == ["+ Create New Character"]
    assert screen._selected() is None


def test_home_logout(home):
    home.press("l")
    assert isinstance(home.screen, WelcomeScreen)


def test_home_quit(home):
    home.press("q")
    assert not home.router.running
