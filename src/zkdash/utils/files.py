"""Utility helpers for working with note files."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path

from zkdash.errors import TargetUnavailableError

LOGGER = logging.getLogger(__name__)


def target_exists(path: str | Path) -> bool:
    return Path(path).expanduser().exists()


def open_in_editor(path: str | Path) -> None:
    """Launch ``$VISUAL``/``$EDITOR`` or the desktop opener on ``path`` without waiting."""
    target = Path(path).expanduser()
    if not target.exists():
        raise TargetUnavailableError(str(path))

    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR")
    if editor:
        LOGGER.debug("Opening %s with %s", target, editor)
        subprocess.Popen([*shlex.split(editor), str(target)])
    elif os.name == "posix":
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        subprocess.Popen([opener, str(target)])
    else:
        os.startfile(target)  # type: ignore[attr-defined]
