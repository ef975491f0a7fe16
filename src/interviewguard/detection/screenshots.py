"""Screenshot detection: global keyboard shortcuts and new files in the save folder.

Two independent sources, each sufficient on its own:

- ShortcutSource hooks keyboard events system-wide (pynput) and fires when
  one of the platform's screenshot chords is pressed.
- FileSource watches the screenshot directory (watchdog) and, on every
  change notification, re-lists it for freshly created screenshot files.

There is no de-duplication between the two; the session controller's
termination latch makes repeated critical events harmless.
"""

from __future__ import annotations

import logging
import platform
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from interviewguard.errors import ScreenshotSourceError
from interviewguard.session.models import ViolationEvent, ViolationKind, WindowRecord

logger = logging.getLogger(__name__)

SCREENSHOT_PROCESS = "System Screenshot"

# macOS virtual key codes for ANSI 3, 4 and 5 (Cmd+Shift+3/4/5)
DEFAULT_KEY_CODES: dict[int, str] = {20: "3", 21: "4", 23: "5"}
DEFAULT_PREFIXES = ("Screenshot", "Screen Shot")
DEFAULT_RECENCY_WINDOW = 5.0

_MODIFIER_ALIASES = {
    "cmd": "cmd",
    "cmd_l": "cmd",
    "cmd_r": "cmd",
    "shift": "shift",
    "shift_l": "shift",
    "shift_r": "shift",
}
_CAPTURE_MODIFIERS = frozenset({"cmd", "shift"})

EmitFn = Callable[[ViolationEvent], None]


@dataclass(frozen=True)
class Shortcut:
    """One screenshot chord: held modifiers plus a virtual key code or a named key."""

    label: str
    modifiers: frozenset[str] = frozenset()
    vk: int | None = None
    key_name: str | None = None

    def matches(self, key: Any, held: set[str]) -> bool:
        if not self.modifiers <= held:
            return False
        if self.key_name is not None and getattr(key, "name", None) == self.key_name:
            return True
        return self.vk is not None and getattr(key, "vk", None) == self.vk


def chords_for_key_codes(key_codes: Mapping[int, str]) -> tuple[Shortcut, ...]:
    """Cmd+Shift+<key> chords for a {virtual key code: label} table."""
    return tuple(
        Shortcut(label=f"Cmd+Shift+{label}", modifiers=_CAPTURE_MODIFIERS, vk=vk)
        for vk, label in key_codes.items()
    )


# pynput reports the Windows key as "cmd"; 0x53 is the Win32 virtual key for S
_PLATFORM_SHORTCUTS: dict[str, tuple[Shortcut, ...]] = {
    "Darwin": chords_for_key_codes(DEFAULT_KEY_CODES),
    "Windows": (
        Shortcut(label="Win+Shift+S", modifiers=_CAPTURE_MODIFIERS, vk=0x53),
        Shortcut(label="PrintScreen", key_name="print_screen"),
    ),
    "Linux": (Shortcut(label="PrintScreen", key_name="print_screen"),),
}


def default_shortcuts(system: str | None = None) -> tuple[Shortcut, ...]:
    """Screenshot chords of the given OS. Empty when none are known."""
    return _PLATFORM_SHORTCUTS.get(system or platform.system(), ())


def default_screenshot_dir(system: str | None = None) -> Path:
    """Where the OS screenshot tool saves by default."""
    if (system or platform.system()) == "Darwin":
        return Path.home() / "Desktop"
    # GNOME and the Windows Snipping Tool both save here
    return Path.home() / "Pictures" / "Screenshots"


def _screenshot_event(details: str) -> ViolationEvent:
    return ViolationEvent(
        kind=ViolationKind.SCREENSHOT_DETECTED,
        details=details,
        window=WindowRecord.placeholder(SCREENSHOT_PROCESS),
    )


class ShortcutSource:
    """Global keyboard hook that recognises screenshot shortcuts.

    Chords come from, in order: ``shortcuts``, Cmd+Shift chords built from
    ``key_codes``, then the defaults of ``system`` (the running OS if None).
    """

    def __init__(
        self,
        emit: EmitFn,
        key_codes: Mapping[int, str] | None = None,
        shortcuts: Iterable[Shortcut] | None = None,
        system: str | None = None,
    ) -> None:
        self._emit = emit
        if shortcuts is not None:
            self._shortcuts = tuple(shortcuts)
        elif key_codes is not None:
            self._shortcuts = chords_for_key_codes(key_codes)
        else:
            self._shortcuts = default_shortcuts(system)
        self._system = system or platform.system()
        self._held: set[str] = set()
        self._lock = threading.Lock()
        self._listener: Any = None

    @property
    def shortcuts(self) -> tuple[Shortcut, ...]:
        return self._shortcuts

    @property
    def is_running(self) -> bool:
        return self._listener is not None

    def start(self) -> None:
        """Install the keyboard hook. Raises ScreenshotSourceError on failure."""
        if not self._shortcuts:
            raise ScreenshotSourceError(
                f"No screenshot shortcuts known for {self._system}"
            )

        try:
            # Imported here: pynput picks an input backend at import time and
            # raises ImportError on hosts without one (e.g. no display).
            from pynput import keyboard
        except ImportError as e:
            raise ScreenshotSourceError(f"Keyboard hook unavailable: {e}") from e

        try:
            listener = keyboard.Listener(
                on_press=self.handle_press,
                on_release=self.handle_release,
            )
            listener.start()
        except Exception as e:
            raise ScreenshotSourceError(f"Keyboard hook failed to start: {e}") from e

        # macOS delivers nothing until the process is trusted for input monitoring
        if getattr(listener, "IS_TRUSTED", True) is False:
            listener.stop()
            raise ScreenshotSourceError("Input monitoring permission not granted")

        self._listener = listener
        logger.debug("Screenshot shortcut hook installed")

    def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is None:
            return
        listener.stop()
        if listener is not threading.current_thread():
            listener.join(timeout=2)
        with self._lock:
            self._held.clear()

    def handle_press(self, key: Any) -> None:
        name = getattr(key, "name", None)
        modifier = _MODIFIER_ALIASES.get(name) if name else None
        if modifier is not None:
            with self._lock:
                self._held.add(modifier)
            return

        with self._lock:
            held = set(self._held)
        for shortcut in self._shortcuts:
            if shortcut.matches(key, held):
                self._emit(
                    _screenshot_event(
                        f"Screenshot keyboard shortcut detected: {shortcut.label}"
                    )
                )
                return

    def handle_release(self, key: Any) -> None:
        name = getattr(key, "name", None)
        modifier = _MODIFIER_ALIASES.get(name) if name else None
        if modifier is not None:
            with self._lock:
                self._held.discard(modifier)


class _DirectoryChangeHandler(FileSystemEventHandler):
    """Funnels every relevant watchdog notification into one rescan."""

    def __init__(self, on_change: Callable[[], None]) -> None:
        self._on_change = on_change

    def on_created(self, event: FileSystemEvent) -> None:
        self._on_change()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._on_change()

    def on_moved(self, event: FileSystemEvent) -> None:
        self._on_change()


class FileSource:
    """Watches the screenshot save directory for newly written screenshots."""

    def __init__(
        self,
        emit: EmitFn,
        directory: Path,
        recency_window: float = DEFAULT_RECENCY_WINDOW,
        prefixes: Iterable[str] = DEFAULT_PREFIXES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._emit = emit
        self._directory = Path(directory)
        self._recency_window = recency_window
        self._prefixes = tuple(prefixes)
        self._clock = clock
        self._observer: Any = None

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Begin watching. Raises ScreenshotSourceError on failure."""
        if not self._directory.is_dir():
            raise ScreenshotSourceError(
                f"Screenshot directory does not exist: {self._directory}"
            )

        observer = Observer()
        try:
            observer.schedule(
                _DirectoryChangeHandler(self.check_directory),
                str(self._directory),
                recursive=False,
            )
            observer.start()
        except OSError as e:
            raise ScreenshotSourceError(
                f"Cannot watch {self._directory}: {e}"
            ) from e

        self._observer = observer
        logger.debug("Watching %s for screenshots", self._directory)

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        # Handlers run on the observer thread, which may be the caller
        if observer is not threading.current_thread():
            observer.join(timeout=2)

    def recent_screenshots(self, now: float | None = None) -> list[Path]:
        """Screenshot files in the directory created within the recency window."""
        now = self._clock() if now is None else now
        try:
            entries = sorted(self._directory.iterdir())
        except OSError as e:
            logger.debug("Cannot list %s: %s", self._directory, e)
            return []

        recent: list[Path] = []
        for path in entries:
            name = path.name
            if name.startswith(".") or not name.startswith(self._prefixes):
                continue
            try:
                st = path.stat()
            except OSError:
                continue
            # st_ctime changes on chmod and rename, so it is not a creation time
            created = getattr(st, "st_birthtime", st.st_mtime)
            if now - created < self._recency_window:
                recent.append(path)
        return recent

    def check_directory(self) -> None:
        """Re-list the directory and emit one event per recent screenshot."""
        for path in self.recent_screenshots():
            self._emit(_screenshot_event(f"Screenshot file detected: {path.name}"))


class ScreenshotWatcher:
    """Owns both screenshot sources for the lifetime of a monitoring run."""

    def __init__(
        self,
        emit: EmitFn,
        directory: Path,
        recency_window: float = DEFAULT_RECENCY_WINDOW,
        prefixes: Iterable[str] = DEFAULT_PREFIXES,
        key_codes: Mapping[int, str] | None = None,
    ) -> None:
        self.shortcuts = ShortcutSource(emit, key_codes=key_codes)
        self.files = FileSource(
            emit, directory, recency_window=recency_window, prefixes=prefixes
        )

    def start(self) -> list[ScreenshotSourceError]:
        """Start both sources. Returns the registration errors, if any.

        A source that fails to register does not prevent the other one
        from running.
        """
        errors: list[ScreenshotSourceError] = []
        for source in (self.shortcuts, self.files):
            try:
                source.start()
            except ScreenshotSourceError as e:
                logger.warning("Screenshot source unavailable: %s", e)
                errors.append(e)
        return errors

    def stop(self) -> None:
        for source in (self.shortcuts, self.files):
            try:
                source.stop()
            except Exception as e:
                logger.debug("Error stopping %s: %s", type(source).__name__, e)
