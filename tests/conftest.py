from __future__ import annotations

import logging
import os
import sys

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `dnd_sheet/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from dnd_sheet.auth import AuthService  # noqa: E402
from dnd_sheet.settings import Settings  # noqa: E402
from dnd_sheet.store import MemoryStore, seed_demo  # noqa: E402
from dnd_sheet.tui.events import CharacterSelected, Key, UserLoggedIn  # noqa: E402
from dnd_sheet.tui.router import Router  # noqa: E402

PASSWORD = "secret1"


class Driver:
    """Runs a Router synchronously: immediate Commands execute inline.

    Delayed Commands (status clears) are collected and returned so a test
    can decide when, or whether, they fire.
    """

    def __init__(self, router: Router):
        self.router = router

    def handle(self, event: object) -> list:
        return self.router.handle(event)

    def run(self, commands: list) -> list:
        delayed = []
        queue = list(commands)
        while queue:
            command = queue.pop(0)
            if command.delay > 0:
                delayed.append(command)
                continue
            queue.extend(self.router.handle(command.execute()))
        return delayed

    def send(self, event: object) -> list:
        return self.run(self.handle(event))

    def press(self, *names: str) -> list:
        delayed = []
        for name in names:
            delayed += self.send(Key(name))
        return delayed

    def type(self, text: str) -> list:
        return self.press(*text)

    @property
    def screen(self):
        return self.router.screen


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """setup_logging() replaces the root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DND_LOG_DIR=tmp_path / "logs",
        DND_STATUS_CLEAR_SECONDS=0.01,
        DND_BLINK_INTERVAL=0.01,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def auth(store):
    return AuthService(store)


@pytest.fixture
def user(auth):
    return auth.register_with_password("hero@example.com", PASSWORD)


@pytest.fixture
def character(store, user):
    return seed_demo(store, user)


@pytest.fixture
def router(store, settings):
    return Router(store, settings)


@pytest.fixture
def driver(router):
    return Driver(router)


@pytest.fixture
def home(driver, user):
    """Driver logged in as ``user`` and showing the character list."""
    driver.send(UserLoggedIn(user=user))
    return driver


@pytest.fixture
def sheet(home, character):
    """Driver showing the demo character's sheet."""
    home.send(CharacterSelected(character=character))
    return home
