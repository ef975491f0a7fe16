"""Detached cleaner: waits for the monitor to exit, deletes it, then deletes itself.

Invoked as ``interviewguard-cleaner <install-path>`` or
``python -m interviewguard.cleaner <install-path>``. Every deletion is
best-effort and the exit status is always 0: nobody is left to read it.
"""

from __future__ import annotations

import logging
import shutil
import sys
import time
from collections.abc import Callable
from pathlib import Path

import click

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 2.0


def remove_path(path: Path) -> bool:
    """Delete a file or directory tree. Returns False instead of raising."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.debug("Could not remove %s: %s", path, e)
        return False
    return True


def self_destruct(
    target: Path,
    self_path: Path | None,
    delay: float = DEFAULT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Sleep until the parent has exited, then remove target and self_path."""
    if delay > 0:
        sleep(delay)
    remove_path(target)
    if self_path is not None:
        remove_path(self_path)


@click.command()
@click.argument("target", required=False, type=click.Path(path_type=Path))
@click.option(
    "--delay",
    type=float,
    default=DEFAULT_DELAY,
    envvar="INTERVIEWGUARD_CLEANER_DELAY",
    show_default=True,
    help="Seconds to wait for the parent process to exit.",
)
@click.option(
    "--self-path",
    type=click.Path(path_type=Path),
    default=None,
    hidden=True,
    help="Executable to delete last (defaults to this program).",
)
def main(target: Path | None, delay: float, self_path: Path | None) -> None:
    """Remove an InterviewGuard installation after it has exited."""
    if target is None:
        return
    if self_path is None:
        self_path = Path(sys.argv[0]).resolve()
    self_destruct(target, self_path, delay=delay)


if __name__ == "__main__":
    main()
