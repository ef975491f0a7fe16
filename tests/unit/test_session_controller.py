"""Tests for the session controller state machine and termination latch."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

from interviewguard.actions.alert import AlertAction
from interviewguard.actions.self_destruct import SelfDestructAction
from interviewguard.detection.blacklist import ProcessBlacklistMonitor
from interviewguard.detection.engine import DetectionEngine
from interviewguard.errors import PermissionDenied, ScreenshotSourceError
from interviewguard.session.controller import SessionController, terminate_process
from interviewguard.session.models import (
    Phase,
    ViolationEvent,
    ViolationKind,
    WindowRecord,
)


class FakeEngine:
    """Engine double that reports start/stop to its observer like the real one."""

    def __init__(self, observer, permitted: bool = True) -> None:
        self.observer = observer
        self.permitted = permitted
        self.running = False
        self.stop_calls = 0

    def start(self) -> bool:
        if not self.permitted:
            self.observer.on_fail(PermissionDenied("Screen recording permission not granted"))
            return False
        self.running = True
        self.observer.on_start()
        return True

    def stop(self) -> None:
        self.stop_calls += 1
        if self.running:
            self.running = False
            self.observer.on_stop()


def _event(kind: ViolationKind, details: str = "details") -> ViolationEvent:
    return ViolationEvent(
        kind=kind, details=details, window=WindowRecord.placeholder("proc")
    )


def _controller(permitted: bool = True):
    engines: list[FakeEngine] = []

    def factory(observer):
        engine = FakeEngine(observer, permitted=permitted)
        engines.append(engine)
        return engine

    shell = MagicMock()
    alert = MagicMock(spec=AlertAction)
    self_destruct = MagicMock(spec=SelfDestructAction)
    exit_func = MagicMock()
    controller = SessionController(
        factory,
        shell=shell,
        alert=alert,
        self_destruct=self_destruct,
        exit_func=exit_func,
    )
    return controller, engines, shell, alert, self_destruct, exit_func


def test_start_enters_monitoring():
    controller, engines, shell, *_ = _controller()

    assert controller.start("  session-42 \n") is True
    assert controller.phase == Phase.MONITORING
    assert controller.session_id == "session-42"
    assert controller.state.started_at is not None
    shell.on_start.assert_called_once()
    assert engines[0].running


def test_start_failure_stays_idle_and_notifies_shell_once():
    controller, _, shell, _, self_destruct, exit_func = _controller(permitted=False)

    assert controller.start("s1") is False
    assert controller.phase == Phase.IDLE
    shell.on_fail.assert_called_once()
    assert "permission" in shell.on_fail.call_args.args[0]
    shell.on_start.assert_not_called()
    self_destruct.execute.assert_not_called()
    exit_func.assert_not_called()


def test_cannot_start_twice():
    controller, engines, *_ = _controller()
    controller.start("s1")
    assert controller.start("s2") is False
    assert len(engines) == 1
    assert controller.session_id == "s1"


def test_critical_violation_terminates():
    controller, engines, shell, alert, self_destruct, exit_func = _controller()
    controller.start("s1")
    event = _event(ViolationKind.CODING_INTERVIEW_TOOL)

    controller.on_violation(event)

    assert controller.phase == Phase.TERMINATING
    assert "coding_interview_tool" in controller.state.terminated_by
    alert.execute.assert_called_once_with("s1", event)
    shell.on_violation.assert_called_once_with(event)
    assert engines[0].stop_calls == 1
    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)


def test_advisory_violation_only_logged():
    controller, engines, shell, alert, self_destruct, exit_func = _controller()
    controller.start("s1")

    controller.on_violation(_event(ViolationKind.LAYER_ANOMALY))
    controller.on_violation(_event(ViolationKind.TRANSPARENT_OVERLAY))

    assert controller.phase == Phase.MONITORING
    assert alert.execute.call_count == 2
    shell.on_violation.assert_not_called()
    self_destruct.execute.assert_not_called()
    exit_func.assert_not_called()


def test_prohibited_app_terminates():
    controller, _, _, alert, self_destruct, exit_func = _controller()
    controller.start("s1")

    controller.on_prohibited_app("Cluely")

    assert controller.phase == Phase.TERMINATING
    alert.execute_process.assert_called_once_with("s1", "Cluely")
    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)


def test_concurrent_critical_signals_spawn_exactly_once():
    controller, _, shell, alert, self_destruct, exit_func = _controller()
    controller.start("s1")

    producers = 16
    barrier = threading.Barrier(producers)

    def produce(i: int) -> None:
        barrier.wait()
        if i % 2:
            controller.on_prohibited_app("Claude")
        else:
            controller.on_violation(_event(ViolationKind.SUSPICIOUS_OVERLAY))

    threads = [threading.Thread(target=produce, args=(i,)) for i in range(producers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert controller.phase == Phase.TERMINATING
    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)
    # only the winning report reaches the alert sink and the shell
    assert alert.execute.call_count + alert.execute_process.call_count == 1
    assert shell.on_violation.call_count == alert.execute.call_count


def test_terminating_is_final():
    controller, _, _, alert, self_destruct, _ = _controller()
    controller.start("s1")
    controller.on_violation(_event(ViolationKind.SCREENSHOT_DETECTED))

    controller.on_violation(_event(ViolationKind.SCREEN_RECORDING))
    controller.on_prohibited_app("ChatGPT")
    controller.stop()
    assert controller.quit() is False
    assert controller.start("again") is False

    assert controller.phase == Phase.TERMINATING
    assert alert.execute.call_count == 1
    alert.execute_process.assert_not_called()
    self_destruct.execute.assert_called_once()


def test_stop_then_stale_event_is_noop():
    controller, engines, shell, alert, self_destruct, exit_func = _controller()
    controller.start("s1")

    controller.stop()
    controller.on_violation(_event(ViolationKind.SCREENSHOT_DETECTED))
    controller.on_prohibited_app("Claude")

    assert controller.phase == Phase.IDLE
    assert engines[0].stop_calls == 1
    shell.on_stop.assert_called_once()
    alert.execute.assert_not_called()
    self_destruct.execute.assert_not_called()
    exit_func.assert_not_called()


def test_quit_while_monitoring_self_destructs():
    controller, _, _, _, self_destruct, exit_func = _controller()
    controller.start("s1")

    assert controller.quit() is True
    assert controller.phase == Phase.TERMINATING
    assert "quit" in controller.state.terminated_by
    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)


def test_quit_while_idle_does_nothing():
    controller, _, _, _, self_destruct, exit_func = _controller()
    assert controller.quit() is False
    assert controller.phase == Phase.IDLE
    self_destruct.execute.assert_not_called()
    exit_func.assert_not_called()


def test_engine_stop_failure_does_not_block_termination():
    controller, engines, _, _, self_destruct, exit_func = _controller()
    controller.start("s1")
    engines[0].stop = MagicMock(side_effect=RuntimeError("hook already gone"))

    controller.on_violation(_event(ViolationKind.SCREEN_RECORDING))

    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)


def test_failures_while_monitoring_are_silent():
    controller, _, shell, *_ = _controller()
    controller.start("s1")

    controller.on_fail(ScreenshotSourceError("Keyboard hook unavailable"))

    shell.on_fail.assert_not_called()
    assert controller.phase == Phase.MONITORING


def test_end_to_end_overlay_terminates_within_one_tick(
    provider, signatures, watcher_factory, window_factory
):
    provider.windows = [
        window_factory(
            process="OBS", title="Display Capture", layer=5, width=1800, height=1000
        )
    ]
    exited = threading.Event()
    self_destruct = MagicMock(spec=SelfDestructAction)
    shell = MagicMock()

    def engine_factory(observer):
        return DetectionEngine(
            provider,
            signatures,
            observer,
            window_interval=1.0,
            watcher_factory=watcher_factory,
            blacklist_monitor=ProcessBlacklistMonitor([], lister=lambda: []),
        )

    controller = SessionController(
        engine_factory,
        shell=shell,
        alert=MagicMock(spec=AlertAction),
        self_destruct=self_destruct,
        exit_func=lambda code: exited.set(),
    )

    assert controller.start("e2e") is True
    assert exited.wait(timeout=1.5)

    assert controller.phase == Phase.TERMINATING
    self_destruct.execute.assert_called_once()
    reported = shell.on_violation.call_args.args[0]
    assert reported.kind in {
        ViolationKind.SUSPICIOUS_OVERLAY,
        ViolationKind.SCREEN_RECORDING,
    }
    assert reported.window.owner_process_name == "OBS"


@patch("interviewguard.session.controller.os._exit")
@patch("interviewguard.session.controller.logging.shutdown")
def test_terminate_process_exits_immediately(mock_shutdown, mock_exit):
    terminate_process(0)
    mock_shutdown.assert_called_once()
    mock_exit.assert_called_once_with(0)


def test_racing_critical_reports_alert_and_notify_once():
    controller, _, shell, alert, self_destruct, exit_func = _controller()
    # a slow sink widens the window between the phase check and the latch
    alert.execute.side_effect = lambda *args: time.sleep(0.05)
    controller.start("s1")

    producers = 8
    barrier = threading.Barrier(producers)

    def produce() -> None:
        barrier.wait()
        controller.on_violation(_event(ViolationKind.SCREEN_RECORDING))

    threads = [threading.Thread(target=produce) for _ in range(producers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    alert.execute.assert_called_once()
    shell.on_violation.assert_called_once()
    self_destruct.execute.assert_called_once()
    exit_func.assert_called_once_with(0)
