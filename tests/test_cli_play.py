from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import dnd_sheet.cli as cli
from dnd_sheet.tui.events import Key, Resize

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("DND_LOG_DIR", str(tmp_path / "_logs"))
    monkeypatch.delenv("DND_DEMO_DATA", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.mark.parametrize(
    "raw,event",
    [
        ("enter\n", Key("enter")),
        ("a\n", Key("a")),
        ("space\n", Key(" ")),
        (" \n", Key(" ")),
        ("Escape\n", Key("esc")),
        ("pagedown\n", Key("pgdown")),
        (":resize 100x30\n", Resize(width=100, height=30)),
        ("\n", None),
    ],
)
def test_parse_line(raw, event):
    assert cli._parse_line(raw) == event


def test_no_args_prints_help():
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "play" in result.output
    assert "status" in result.output


def test_status_shows_configuration():
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 0
    assert "Configuration" in result.output
    assert "Min password:" in result.output


def test_keys_table():
    result = runner.invoke(cli.app, ["keys"])
    assert result.exit_code == 0
    assert "Keys" in result.output
    assert "ctrl+c" in result.output


def test_play_demo_with_public_key(tmp_path: Path):
    result = runner.invoke(
        cli.app,
        ["play", "--demo", "--plain", "--public-key", "ssh-ed25519 AAAA demo"],
        input="enter\nq\nq\n",
    )
    assert result.exit_code == 0, result.output
    assert "Elara Moonwhisper" in result.output
    assert "Combat" in result.output
    assert "Session log:" in result.output
    assert (tmp_path / "_logs" / "dnd_sheet.log").exists()


def test_play_demo_password_hint():
    result = runner.invoke(cli.app, ["play", "--demo", "--plain"], input="q\n")
    assert result.exit_code == 0, result.output
    assert "demo@example.com" in result.output
    assert "Welcome, Adventurer!" in result.output


def test_play_custom_size():
    result = runner.invoke(cli.app, ["play", "--plain", "-w", "20", "-h", "5"], input="")
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    start = next(i for i, line in enumerate(lines) if "start" in line)
    end = next(i for i, line in enumerate(lines) if line.startswith("Session log"))
    frame = lines[start + 1 : end]
    assert 0 < len(frame) <= 10
    assert all(len(line) <= 40 for line in frame)


@pytest.mark.parametrize("raw", [":resize 80\n", ":resize axb\n", ":resize 80x\n"])
def test_parse_line_ignores_malformed_resize(raw, capsys):
    assert cli._parse_line(raw) is None
    assert "Ignoring malformed resize" in capsys.readouterr().err


def test_play_survives_malformed_resize():
    result = runner.invoke(cli.app, ["play", "--plain"], input=":resize 80\nq\n")
    assert result.exit_code == 0, result.output
    assert "Session log:" in result.output
