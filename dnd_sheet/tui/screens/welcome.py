"""Welcome screen: login / registration by email or public key."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from ...auth import AuthError, UserNotFound, normalize_public_key
from ..components import button, render_error, render_help
from ..events import Key, Quit, Resize, Tick, UserLoggedIn
from ..router import register_screen
from ..textinput import TextInput
from ..theme import LOGO_TEXT
from .base import Screen

logger = logging.getLogger(__name__)

LOGIN_KEY = "Login with SSH Key"
LOGIN_EMAIL = "Login with Email"
REGISTER_EMAIL = "Register with Email"
REGISTER_KEY = "Register with SSH Key"

MENU_HELP = "↑/↓: navigate • enter: select • q: quit"
FORM_HELP = "tab: next field • enter: submit • esc: back"

SUBMIT_SLOT = 2


class WelcomeMode(str, Enum):
    MENU = "menu"
    LOGIN = "login"
    REGISTER = "register"
    REGISTER_KEY = "register-key"
    LOGIN_KEY = "login-key"


_MENU_MODES = {
    LOGIN_KEY: WelcomeMode.LOGIN_KEY,
    LOGIN_EMAIL: WelcomeMode.LOGIN,
    REGISTER_EMAIL: WelcomeMode.REGISTER,
    REGISTER_KEY: WelcomeMode.REGISTER_KEY,
}


@register_screen("welcome")
class WelcomeScreen(Screen):
    """Menu plus the email form and the two public-key confirmations.

    Auth calls are synchronous; a success yields ``UserLoggedIn`` for the
    Router to act on.
    """

    def __init__(self, router):
        super().__init__(router)
        self.auth = router.auth
        self.public_key = self.session.public_key
        self.mode = WelcomeMode.MENU
        self.menu_index = 0
        self.focus_index = 0
        self.error = ""
        self.email_input = TextInput(placeholder="Email", width=30, char_limit=255)
        self.pass_input = TextInput(placeholder="Password", width=30, char_limit=100, mask="*")

    def menu_items(self) -> list[str]:
        if self.public_key:
            # Key login first since it needs no typing.
            return [LOGIN_KEY, LOGIN_EMAIL, REGISTER_EMAIL, REGISTER_KEY]
        return [LOGIN_EMAIL, REGISTER_EMAIL]

    # ── Update ─────────────────────────────────────────────────────

    def update(self, event: object) -> list[Any]:
        if isinstance(event, Resize):
            return []
        if isinstance(event, Tick):
            self._focused_input_update(event)
            return []
        if not isinstance(event, Key):
            return []

        self.error = ""
        if self.mode is WelcomeMode.MENU:
            return self._update_menu(event)
        if self.mode in (WelcomeMode.LOGIN, WelcomeMode.REGISTER):
            return self._update_form(event)
        return self._update_key_confirm(event)

    def _update_menu(self, key: Key) -> list[Any]:
        items = self.menu_items()
        name = key.name
        if name in ("up", "k"):
            if self.menu_index > 0:
                self.menu_index -= 1
        elif name in ("down", "j"):
            if self.menu_index < len(items) - 1:
                self.menu_index += 1
        elif name == "enter":
            self.mode = _MENU_MODES[items[self.menu_index]]
            if self.mode in (WelcomeMode.LOGIN, WelcomeMode.REGISTER):
                self.focus_index = 0
                self._update_focus()
        elif name == "q":
            return [Quit()]
        return []

    def _update_form(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("tab", "down"):
            self.focus_index = (self.focus_index + 1) % 3
            self._update_focus()
        elif name in ("shift+tab", "up"):
            self.focus_index = (self.focus_index - 1) % 3
            self._update_focus()
        elif name == "enter":
            if self.focus_index == SUBMIT_SLOT:
                return self._submit()
            self.focus_index = (self.focus_index + 1) % 3
            self._update_focus()
        elif name == "esc":
            self.mode = WelcomeMode.MENU
            self.email_input.set_value("")
            self.pass_input.set_value("")
            self.email_input.blur()
            self.pass_input.blur()
        else:
            self._focused_input_update(key)
        return []

    def _update_key_confirm(self, key: Key) -> list[Any]:
        name = key.name
        if name in ("esc", "n"):
            self.mode = WelcomeMode.MENU
            return []
        if name not in ("enter", "y"):
            return []
        if not self.public_key:
            self.error = "No SSH key detected"
            return []

        if self.mode is WelcomeMode.REGISTER_KEY:
            try:
                user = self.auth.register_with_public_key(self.public_key)
            except AuthError as e:
                self.error = str(e)
                return []
        else:
            try:
                user = self.auth.login_with_public_key(self.public_key)
            except UserNotFound:
                self.error = "SSH key not registered. Please register first."
                return []
        return [UserLoggedIn(user=user)]

    def _submit(self) -> list[Any]:
        email = self.email_input.value.strip()
        password = self.pass_input.value
        min_length = self.settings.DND_PASSWORD_MIN_LENGTH

        if not email:
            self.error = "Email is required"
            return []
        if not password:
            self.error = "Password is required"
            return []
        if len(password) < min_length:
            self.error = f"Password must be at least {min_length} characters"
            return []

        try:
            if self.mode is WelcomeMode.LOGIN:
                user = self.auth.login_with_password(email, password)
            else:
                user = self.auth.register_with_password(email, password)
        except AuthError as e:
            logger.info("Email %s failed: %s", self.mode.value, e)
            self.error = str(e)
            return []

        self.email_input.set_value("")
        self.pass_input.set_value("")
        return [UserLoggedIn(user=user)]

    def _update_focus(self) -> None:
        self.email_input.blur()
        self.pass_input.blur()
        if self.focus_index == 0:
            self.email_input.focus()
        elif self.focus_index == 1:
            self.pass_input.focus()

    def _focused_input_update(self, event: object) -> None:
        if self.mode not in (WelcomeMode.LOGIN, WelcomeMode.REGISTER):
            return
        if self.focus_index == 0:
            self.email_input.update(event)
        elif self.focus_index == 1:
            self.pass_input.update(event)

    # ── View ───────────────────────────────────────────────────────

    def view(self) -> RenderableType:
        theme = self.theme
        parts: list[RenderableType] = [Text(LOGO_TEXT.strip("\n"), style=theme.logo), Text("")]

        if self.mode is WelcomeMode.MENU:
            parts.extend(self._render_menu())
        elif self.mode is WelcomeMode.LOGIN:
            parts.extend(self._render_form("Login"))
        elif self.mode is WelcomeMode.REGISTER:
            parts.extend(self._render_form("Register"))
        elif self.mode is WelcomeMode.REGISTER_KEY:
            parts.extend(self._render_key_confirm(REGISTER_KEY, "Register with this key? (y/n)", "registration"))
        else:
            parts.extend(self._render_key_confirm(LOGIN_KEY, "Login with this key? (y/n)", "login"))

        if self.error:
            parts.append(Text(""))
            parts.append(render_error(self.error, theme))

        parts.append(Text(""))
        parts.append(render_help(MENU_HELP if self.mode is WelcomeMode.MENU else FORM_HELP, theme))
        return self.place(Group(*parts))

    def _render_menu(self) -> list[RenderableType]:
        theme = self.theme
        lines: list[RenderableType] = [Text("Welcome, Adventurer!", style=theme.title), Text("")]
        for i, item in enumerate(self.menu_items()):
            selected = i == self.menu_index
            line = Text("> " if selected else "  ", style=theme.cursor)
            line.append(item, style=theme.selected if selected else theme.unselected)
            lines.append(line)
        if self.public_key:
            lines.append(Text(""))
            lines.append(Text("✓ SSH Key detected", style=theme.success))
        return lines

    def _render_form(self, title: str) -> list[RenderableType]:
        theme = self.theme
        email = self.email_input.view(theme)
        password = self.pass_input.view(theme)
        if self.focus_index == 0:
            email.stylize(theme.focused_input)
        elif self.focus_index == 1:
            password.stylize(theme.focused_input)
        return [
            Text(title, style=theme.title),
            Text(""),
            Text("Email:"),
            email,
            Text(""),
            Text("Password:"),
            password,
            Text(""),
            button(title, self.focus_index == SUBMIT_SLOT, theme),
        ]

    def _render_key_confirm(self, title: str, prompt: str, alternative: str) -> list[RenderableType]:
        theme = self.theme
        lines: list[RenderableType] = [Text(title, style=theme.title), Text("")]
        if not self.public_key:
            lines.append(Text("No SSH key detected.", style=theme.error))
            lines.append(Text(f"Please connect with an SSH key or use email {alternative}."))
            return lines

        key = normalize_public_key(self.public_key)
        if len(key) > 50:
            key = key[:50] + "..."
        lines.append(Text("Your SSH key:"))
        lines.append(Panel(Text(key), border_style=theme.border, expand=False))
        lines.append(Text(""))
        lines.append(Text(prompt))
        return lines
