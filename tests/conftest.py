"""Shared test fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable

import pytest

from interviewguard.errors import DetectionError, PermissionDenied
from interviewguard.session.models import Bounds, ViolationEvent, WindowRecord
from interviewguard.signatures.loader import default_signatures
from interviewguard.signatures.models import SignatureTables


class FakeProvider:
    """In-memory WindowSnapshotProvider."""

    def __init__(
        self,
        windows: list[WindowRecord] | None = None,
        permitted: bool = True,
        screen_area: float = 1920 * 1080,
    ) -> None:
        self.windows = list(windows or [])
        self.permitted = permitted
        self.area = screen_area
        self.snapshot_calls = 0
        self.snapshot_error: Exception | None = None

    def check_permission(self) -> None:
        if not self.permitted:
            raise PermissionDenied("Screen recording permission not granted")

    def snapshot(self) -> list[WindowRecord]:
        self.snapshot_calls += 1
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return list(self.windows)

    def primary_screen_area(self) -> float:
        return self.area


class FakeWatcher:
    """Stands in for ScreenshotWatcher; exposes the engine's emit function."""

    def __init__(self, emit: Callable[[ViolationEvent], None], errors=None) -> None:
        self.emit = emit
        self.errors = list(errors or [])
        self.started = False
        self.stopped = False

    def start(self) -> list[DetectionError]:
        self.started = True
        return self.errors

    def stop(self) -> None:
        self.stopped = True


class RecordingObserver:
    """DetectionObserver that records every callback."""

    def __init__(self) -> None:
        self.started = 0
        self.stopped = 0
        self.failures: list[DetectionError] = []
        self.violations: list[ViolationEvent] = []
        self.prohibited: list[str] = []
        self.got_violation = threading.Event()

    def on_start(self) -> None:
        self.started += 1

    def on_stop(self) -> None:
        self.stopped += 1

    def on_fail(self, error: DetectionError) -> None:
        self.failures.append(error)

    def on_violation(self, event: ViolationEvent) -> None:
        self.violations.append(event)
        self.got_violation.set()

    def on_prohibited_app(self, name: str) -> None:
        self.prohibited.append(name)
        self.got_violation.set()


def make_window(
    process: str = "Safari",
    title: str = "",
    layer: int = 0,
    width: float = 400,
    height: float = 300,
    window_id: int = 1,
    pid: int = 100,
) -> WindowRecord:
    return WindowRecord(
        id=window_id,
        owner_process_name=process,
        title=title,
        layer=layer,
        bounds=Bounds(x=0, y=0, width=width, height=height),
        is_on_screen=True,
        owner_pid=pid,
    )


@pytest.fixture
def signatures() -> SignatureTables:
    return default_signatures()


@pytest.fixture
def window_factory() -> Callable[..., WindowRecord]:
    return make_window


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def fake_watchers() -> list[FakeWatcher]:
    """Collects FakeWatchers built through the `watcher_factory` fixture."""
    return []


@pytest.fixture
def watcher_factory(fake_watchers: list[FakeWatcher]):
    def factory(emit: Callable[[ViolationEvent], None]) -> FakeWatcher:
        watcher = FakeWatcher(emit)
        fake_watchers.append(watcher)
        return watcher

    return factory
