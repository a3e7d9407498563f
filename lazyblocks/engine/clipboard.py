"""Native clipboard access and the off-screen transfer buffer used by copy/cut."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CLIPBOARD_TIMEOUT = 2.0
_LINUX_TOOLS = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
)


def clipboard_commands() -> list[list[str]]:
    """Candidate copy commands for this platform, in preference order."""
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [list(tool) for tool in _LINUX_TOOLS]


def copy_text_to_clipboard(text: str) -> bool:
    """Pipe ``text`` into the first installed clipboard tool that accepts it."""
    if not text:
        return False
    for command in clipboard_commands():
        if shutil.which(command[0]) is None:
            continue
        try:
            proc = subprocess.run(command, input=text, text=True, check=False, timeout=CLIPBOARD_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("clipboard command %s failed: %s", command[0], exc)
            continue
        if proc.returncode == 0:
            return True
        logger.warning("clipboard command %s exited with %d", command[0], proc.returncode)
    logger.debug("no clipboard command accepted %d characters", len(text))
    return False


@dataclass(eq=False)
class TransferBuffer:
    """Hidden text holder that owns focus while the native copy runs."""

    text: str
    selected: bool = False
    attached: bool = True

    def select(self) -> None:
        self.selected = True

    def remove(self) -> None:
        self.selected = False
        self.attached = False
