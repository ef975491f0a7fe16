"""Detection engine: orchestrates window polling, classification and watchers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from interviewguard.capture.base import WindowSnapshotProvider
from interviewguard.detection.blacklist import ProcessBlacklistMonitor
from interviewguard.detection.classifier import WindowClassifier
from interviewguard.detection.screenshots import (
    DEFAULT_RECENCY_WINDOW,
    EmitFn,
    ScreenshotWatcher,
    default_screenshot_dir,
)
from interviewguard.errors import (
    DetectionError,
    PermissionDenied,
    SystemQueryFailure,
    UnknownDetectionFailure,
)
from interviewguard.session.models import ViolationEvent
from interviewguard.signatures.models import SignatureTables

logger = logging.getLogger(__name__)

# Upper bound on waiting for the poll thread; backend queries time out at 5s
_JOIN_TIMEOUT = 10.0


class DetectionObserver(Protocol):
    """Receives everything the engine reports."""

    def on_start(self) -> None: ...

    def on_stop(self) -> None: ...

    def on_fail(self, error: DetectionError) -> None: ...

    def on_violation(self, event: ViolationEvent) -> None: ...

    def on_prohibited_app(self, name: str) -> None: ...


WatcherFactory = Callable[[EmitFn], ScreenshotWatcher]


class DetectionEngine:
    """Polls windows and processes on timers and merges asynchronous screenshot events.

    All producers (poll thread, keyboard hook, file watcher) deliver through
    the same gate: a callback that reaches the gate after stop() is dropped.
    The gate is best-effort. A callback that passed it just before stop() may
    still reach the observer after stop() returns, so observers that must
    ignore late reports (SessionController) re-check their own state.
    """

    def __init__(
        self,
        provider: WindowSnapshotProvider,
        signatures: SignatureTables,
        observer: DetectionObserver,
        *,
        window_interval: float = 1.0,
        process_interval: float = 5.0,
        screenshot_dir: Path | None = None,
        recency_window: float = DEFAULT_RECENCY_WINDOW,
        key_codes: Mapping[int, str] | None = None,
        watcher_factory: WatcherFactory | None = None,
        blacklist_monitor: ProcessBlacklistMonitor | None = None,
    ) -> None:
        self._provider = provider
        self._observer = observer
        self._classifier = WindowClassifier(signatures)
        self._window_interval = window_interval
        self._process_interval = process_interval
        self._blacklist = blacklist_monitor or ProcessBlacklistMonitor(
            signatures.blacklist
        )

        screenshot_dir = screenshot_dir or default_screenshot_dir()
        if watcher_factory is None:

            def watcher_factory(emit: EmitFn) -> ScreenshotWatcher:
                return ScreenshotWatcher(
                    emit,
                    screenshot_dir,
                    recency_window=recency_window,
                    prefixes=signatures.screenshot_prefixes,
                    key_codes=key_codes,
                )

        self._watcher_factory = watcher_factory

        self._lock = threading.Lock()
        self._active = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._watcher: ScreenshotWatcher | None = None
        self._screen_area = 0.0

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._active

    @property
    def screen_area(self) -> float:
        return self._screen_area

    def start(self) -> bool:
        """Check permission and start every detection source.

        Returns False (after notifying the observer) if the OS refuses window
        enumeration; nothing is started in that case.
        """
        with self._lock:
            if self._active:
                return True

        try:
            self._provider.check_permission()
        except PermissionDenied as e:
            logger.warning("Cannot start monitoring: %s", e)
            self._observer.on_fail(e)
            return False

        self._screen_area = self._provider.primary_screen_area()

        with self._lock:
            self._active = True
            self._stop_event = threading.Event()
            watcher = self._watcher_factory(self._emit)
            self._watcher = watcher

        self._observer.on_start()

        for error in watcher.start():
            self._observer.on_fail(error)

        with self._lock:
            if not self._active:
                # stopped by a violation while the watchers were registering
                watcher.stop()
                return True
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="interviewguard-poll",
                daemon=True,
            )
            self._thread.start()

        logger.info(
            "Monitoring started (window every %.1fs, processes every %.1fs)",
            self._window_interval,
            self._process_interval,
        )
        return True

    def stop(self) -> None:
        """Stop all sources. Safe to call from any producer thread, and repeatedly."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            watcher, self._watcher = self._watcher, None
            thread, self._thread = self._thread, None
            stop_event = self._stop_event

        stop_event.set()
        if watcher is not None:
            watcher.stop()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=_JOIN_TIMEOUT)

        logger.info("Monitoring stopped")
        self._observer.on_stop()

    def poll_once(self) -> list[ViolationEvent]:
        """Run one window pass: snapshot, classify, report.

        Raises SystemQueryFailure if the snapshot cannot be taken.
        """
        windows = self._provider.snapshot()
        events: list[ViolationEvent] = []
        for window in windows:
            for match in self._classifier.classify(window, self._screen_area):
                event = ViolationEvent(
                    kind=match.kind, details=match.details, window=window
                )
                events.append(event)
                self._emit(event)
        return events

    def scan_processes(self) -> str | None:
        """Run one blacklist scan and report the first prohibited application."""
        name = self._blacklist.scan()
        if name is not None:
            self._emit_prohibited(name)
        return name

    def _run(self, stop_event: threading.Event) -> None:
        next_process_scan = time.monotonic()
        while not stop_event.is_set():
            self._guarded(self.poll_once)
            if stop_event.is_set():
                break
            if time.monotonic() >= next_process_scan:
                next_process_scan = time.monotonic() + self._process_interval
                self._guarded(self.scan_processes)
            stop_event.wait(timeout=self._window_interval)

    def _guarded(self, detection_pass: Callable[[], object]) -> None:
        try:
            detection_pass()
        except SystemQueryFailure as e:
            logger.debug("Skipping tick: %s", e)
        except Exception as e:
            logger.error("Detection pass failed: %s", e, exc_info=True)
            if self.is_running:
                self._observer.on_fail(UnknownDetectionFailure(str(e)))

    def _emit(self, event: ViolationEvent) -> None:
        # Observer runs outside the lock: it may call stop() from this thread
        if not self.is_running:
            logger.debug("Dropping %s after stop", event.kind.value)
            return
        self._observer.on_violation(event)

    def _emit_prohibited(self, name: str) -> None:
        if not self.is_running:
            logger.debug("Dropping blacklist hit %s after stop", name)
            return
        self._observer.on_prohibited_app(name)
