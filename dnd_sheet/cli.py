from __future__ import annotations

import asyncio
import sys
from typing import Iterable, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .auth import AuthService
from .logging import _resolve_log_dir, setup_logging
from .settings import Settings, load_settings
from .store import MemoryStore, seed_demo
from .tui.events import Key, Resize
from .tui.router import Router
from .tui.runtime import Runtime

app = typer.Typer(
    add_completion=False,
    help="dnd_sheet: D&D 5e character sheets in the terminal",
    rich_markup_mode="rich",
)
console = Console()

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "dragon"

# Words accepted on a `play` input line in place of the literal key.
KEY_ALIASES = {
    "space": " ",
    "escape": "esc",
    "return": "enter",
    "pageup": "pgup",
    "pagedown": "pgdown",
    "backtab": "shift+tab",
}

KEY_REFERENCE = [
    ("Global", "ctrl+c", "Quit from anywhere"),
    ("Welcome", "↑/↓ enter", "Choose login or registration"),
    ("Welcome", "tab / shift+tab", "Move between email, password and submit"),
    ("Home", "↑/↓ enter", "Open a character or create one"),
    ("Home", "d / l / q", "Delete character / log out / quit"),
    ("Create", "enter / esc", "Next step / previous step"),
    ("Create", "1-6 / ←→ / space", "Assign scores / point buy / pick skills"),
    ("Sheet", "tab / ←→", "Switch tabs"),
    ("Sheet", "j/k g/G PgUp/PgDn", "Move in the focused table"),
    ("Sheet", "- / + / e", "Damage / heal / set HP (Combat)"),
    ("Sheet", "a / d", "Add / delete a row"),
    ("Sheet", "0-9 / p", "Spell level filter / toggle prepared"),
    ("Sheet", "r / ?", "Roll a d20 / keyboard help"),
    ("Sheet", "q / esc", "Back to the character list"),
]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _seed_demo_user(store: MemoryStore, public_key: str | None) -> str:
    """Create the demo account and its sample character; return a login hint."""
    auth = AuthService(store)
    if public_key:
        user = auth.register_with_public_key(public_key)
        hint = "demo user registered with the given public key"
    else:
        user = auth.register_with_password(DEMO_EMAIL, DEMO_PASSWORD)
        hint = f"log in with {DEMO_EMAIL} / {DEMO_PASSWORD}"
    seed_demo(store, user)
    return hint


def _parse_line(raw: str) -> object | None:
    """Turn one input line into an event.

    A line is a key name ("enter", "a", "space"), or ``:resize WxH``.
    """
    line = raw.rstrip("\r\n")
    if not line:
        return None
    if line.startswith(":resize "):
        width, _, height = line.split(" ", 1)[1].partition("x")
        try:
            return Resize(width=int(width), height=int(height))
        except ValueError:
            typer.echo(f"Ignoring malformed resize: {line}", err=True)
            return None
    if line == " ":
        return Key(" ")
    name = line.strip()
    return Key(KEY_ALIASES.get(name.lower(), name))


def _print_frame(runtime: Runtime, label: str, styled: bool) -> None:
    console.rule(f"[dim]{label}[/dim]")
    typer.echo(runtime.render(styled=styled), color=styled)


async def _play(runtime: Runtime, lines: Iterable[str], styled: bool) -> None:
    await runtime.start()
    _print_frame(runtime, "start", styled)
    for raw in lines:
        event = _parse_line(raw)
        if event is None:
            continue
        await runtime.send(event)
        if not runtime.running:
            break
        label = event.name if isinstance(event, Key) else raw.strip()
        _print_frame(runtime, repr(label), styled)
    await runtime.close()


def _settings_panel(s: Settings) -> Panel:
    return Panel.fit(
        "\n".join([
            f"[bold]Frame:[/bold]         {s.DND_DEFAULT_WIDTH}x{s.DND_DEFAULT_HEIGHT}",
            f"[bold]Status clear:[/bold]  {s.DND_STATUS_CLEAR_SECONDS}s",
            f"[bold]Cursor blink:[/bold]  {s.DND_BLINK_INTERVAL}s",
            f"[bold]Min password:[/bold]  {s.DND_PASSWORD_MIN_LENGTH} characters",
            f"[bold]Demo data:[/bold]     {s.DND_DEMO_DATA}",
            "",
            "[dim]Logging:[/dim]",
            f"  dir:       {_resolve_log_dir(s)}",
            f"  level:     {s.DND_LOG_LEVEL}",
            f"  retention: {s.DND_LOG_BACKUP_COUNT} days",
        ]),
        title="[bold]Configuration[/bold]",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context):
    """
    [bold]dnd_sheet[/bold]: keyboard-driven D&D 5e character sheets.

    [bold]Quick Commands:[/bold]
      dnd-sheet status      Show configuration
      dnd-sheet play        Drive a local session from stdin
      dnd-sheet keys        Key reference

    [bold]Examples:[/bold]
      printf 'down\\nenter\\n' | dnd-sheet play --demo --plain
    """
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(code=0)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("status", help="[bold cyan]S[/bold cyan]how configuration")
def status():
    """Show the effective configuration."""
    console.print(_settings_panel(load_settings()))


@app.command("play", help="[bold cyan]P[/bold cyan]lay a local session, one key name per stdin line")
def play(
    width: Optional[int] = typer.Option(None, "--width", "-w", help="Frame width"),
    height: Optional[int] = typer.Option(None, "--height", "-h", help="Frame height"),
    public_key: Optional[str] = typer.Option(None, "--public-key", help="Identity key offered by the client"),
    demo: bool = typer.Option(False, "--demo", help="Seed a demo account with a sample character"),
    plain: bool = typer.Option(False, "--plain", help="Print frames without ANSI styling"),
):
    """Run the UI against an in-memory store, printing a frame after every input line."""
    s = load_settings()
    log_file = setup_logging(s)

    store = MemoryStore()
    if demo or s.DND_DEMO_DATA:
        hint = _seed_demo_user(store, public_key)
        console.print(f"[dim]Demo: {hint}[/dim]")

    router = Router(store, s, public_key=public_key)
    if width or height:
        router.session.remember(
            width=max(40, width or s.DND_DEFAULT_WIDTH),
            height=max(10, height or s.DND_DEFAULT_HEIGHT),
        )

    runtime = Runtime(router, blink=False)
    asyncio.run(_play(runtime, sys.stdin, styled=not plain))
    console.print(f"[dim]Session log: {log_file}[/dim]")


@app.command("keys", help="[bold cyan]K[/bold cyan]ey reference")
def keys():
    """Print the key bindings of every screen."""
    t = Table(title="[bold]Keys[/bold]")
    t.add_column("Screen", style="bold")
    t.add_column("Keys", style="cyan")
    t.add_column("Action")
    for screen, binding, action in KEY_REFERENCE:
        t.add_row(screen, binding, action)
    console.print(t)


def main():
    app()
