"""Self-destruct action: launch the detached cleaner that deletes this installation."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

CLEANER_MODULE = "interviewguard.cleaner"
DELAY_ENV = "INTERVIEWGUARD_CLEANER_DELAY"


def resolve_install_path(configured: Path | None = None) -> Path:
    """Directory to delete on self-destruct.

    Precedence: explicit configuration, the frozen bundle's directory, then
    the installed package directory.
    """
    if configured is not None:
        return Path(configured).resolve()
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent.parent


class SelfDestructAction:
    """Spawns the cleaner as a detached process and returns immediately.

    The cleaner waits for this process to exit before deleting anything, so
    the caller must terminate right after execute().
    """

    def __init__(self, install_path: Path | None = None, delay: float | None = None) -> None:
        self._install_path = resolve_install_path(install_path)
        self._delay = delay

    @property
    def install_path(self) -> Path:
        return self._install_path

    def command(self) -> list[str]:
        return [sys.executable, "-m", CLEANER_MODULE, str(self._install_path)]

    def execute(self) -> bool:
        env = os.environ.copy()
        if self._delay is not None:
            env[DELAY_ENV] = str(self._delay)

        logger.critical("SELF-DESTRUCT: removing %s", self._install_path)
        try:
            subprocess.Popen(
                self.command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                start_new_session=True,
                env=env,
            )
        except OSError as e:
            logger.error("Failed to launch cleaner: %s", e)
            return False
        return True
