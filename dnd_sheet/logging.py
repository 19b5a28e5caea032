from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from .settings import Settings


def _resolve_log_dir(settings: Settings) -> Path:
    """Resolve the log directory.

    - If DND_LOG_DIR is absolute, use it directly.
    - Otherwise, treat it as relative to the project root.
    """

    p = settings.DND_LOG_DIR
    if p.is_absolute():
        return p

    project_root = Path(__file__).resolve().parents[1]  # .../dnd_sheet -> project root
    return project_root / p


def setup_logging(settings: Settings, *, stderr: bool = False) -> Path:
    """Send all `logging` output to a daily-rotated file.

    Returns the resolved log file path.

    The terminal is owned by the UI, so console logging is opt-in via
    ``stderr``. Safe to call more than once (root handlers are reset).
    """

    log_dir = _resolve_log_dir(settings)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "dnd_sheet.log"

    level_name = str(settings.DND_LOG_LEVEL or "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    file_handler = TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        interval=1,
        backupCount=max(0, int(settings.DND_LOG_BACKUP_COUNT or 0)),
        encoding="utf-8",
        utc=False,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(fmt))

    root = logging.getLogger()
    for h in root.handlers:
        h.close()
    root.handlers = []
    root.setLevel(level)
    root.addHandler(file_handler)

    if stderr:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(console_handler)

    logging.getLogger("dnd_sheet").info(
        "dnd_sheet logging enabled (file=%s, level=%s)", os.fspath(log_file), level_name
    )
    return log_file
