"""Session controller: owns the session state machine and the termination latch."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from typing import Protocol

from interviewguard.actions.alert import AlertAction
from interviewguard.actions.self_destruct import SelfDestructAction
from interviewguard.detection.engine import DetectionEngine, DetectionObserver
from interviewguard.errors import DetectionError
from interviewguard.session.models import Phase, SessionState, ViolationEvent

logger = logging.getLogger(__name__)

EngineFactory = Callable[[DetectionObserver], DetectionEngine]


class ShellCallbacks(Protocol):
    """What the user-facing shell is told. Every method is optional."""

    def on_start(self) -> None: ...

    def on_stop(self) -> None: ...

    def on_fail(self, reason: str) -> None: ...

    def on_violation(self, event: ViolationEvent) -> None: ...


def terminate_process(code: int = 0) -> None:
    """Flush log handlers and exit immediately, skipping interpreter cleanup."""
    logging.shutdown()
    os._exit(code)


class SessionController:
    """Drives Idle -> Monitoring -> Terminating for one interview session.

    Every producer thread reports here. Phase changes happen under a single
    lock, so only the first critical report performs the self-destruct; all
    later or concurrent reports see TERMINATING and are dropped.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        shell: ShellCallbacks | None = None,
        alert: AlertAction | None = None,
        self_destruct: SelfDestructAction | None = None,
        exit_func: Callable[[int], None] = terminate_process,
    ) -> None:
        self._engine_factory = engine_factory
        self._shell = shell
        self._alert = alert or AlertAction()
        self._self_destruct = self_destruct or SelfDestructAction()
        self._exit = exit_func
        self._state = SessionState()
        self._lock = threading.Lock()
        self._engine: DetectionEngine | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self._state.phase

    @property
    def session_id(self) -> str:
        return self._state.session_id

    def start(self, session_id: str) -> bool:
        """Begin monitoring. Returns False if the engine could not start."""
        with self._lock:
            if self._state.phase is not Phase.IDLE:
                logger.warning("Cannot start: session is %s", self._state.phase.value)
                return False
            self._state.session_id = session_id.strip()
            engine = self._engine_factory(self)
            self._engine = engine

        logger.info("Starting session %s", self._state.session_id)
        return engine.start()

    def stop(self) -> None:
        """End the session normally (no self-destruct)."""
        with self._lock:
            if self._state.phase is not Phase.MONITORING:
                return
            self._state.phase = Phase.IDLE
            engine = self._engine
        if engine is not None:
            engine.stop()

    def quit(self) -> bool:
        """User-initiated quit. While monitoring this is treated as a violation."""
        return self._terminate("application quit during monitoring")

    # --- DetectionObserver ---

    def on_start(self) -> None:
        with self._lock:
            if self._state.phase is not Phase.IDLE:
                return
            self._state.phase = Phase.MONITORING
            self._state.started_at = time.time()
        logger.info("Session %s is monitoring", self._state.session_id)
        if self._shell is not None:
            self._shell.on_start()

    def on_stop(self) -> None:
        logger.debug("Detection engine stopped")
        if self._shell is not None and self.phase is Phase.IDLE:
            self._shell.on_stop()

    def on_fail(self, error: DetectionError) -> None:
        with self._lock:
            starting = self._state.phase is Phase.IDLE
        if starting:
            logger.error("Monitoring failed to start: %s", error)
            if self._shell is not None:
                self._shell.on_fail(str(error))
        else:
            logger.warning("Detection degraded: %s", error)

    def on_violation(self, event: ViolationEvent) -> None:
        if not event.kind.is_critical:
            if self.phase is Phase.MONITORING:
                self._alert.execute(self._state.session_id, event)
            return

        # Only the report that wins the latch is alerted and shown
        if not self._latch(f"{event.kind.value}: {event.details}"):
            return
        self._alert.execute(self._state.session_id, event)
        if self._shell is not None:
            self._shell.on_violation(event)
        self._self_destruct_and_exit()

    def on_prohibited_app(self, name: str) -> None:
        if not self._latch(f"prohibited application: {name}"):
            return
        self._alert.execute_process(self._state.session_id, name)
        self._self_destruct_and_exit()

    # --- termination ---

    def _terminate(self, reason: str) -> bool:
        if not self._latch(reason):
            return False
        self._self_destruct_and_exit()
        return True

    def _latch(self, reason: str) -> bool:
        """Move MONITORING -> TERMINATING. Returns False for every caller but the first."""
        with self._lock:
            if self._state.phase is not Phase.MONITORING:
                return False
            self._state.phase = Phase.TERMINATING
            self._state.terminated_by = reason
            return True

    def _self_destruct_and_exit(self) -> None:
        engine = self._engine
        logger.critical(
            "CRITICAL VIOLATION in session %s (%s): initiating self-destruct",
            self._state.session_id,
            self._state.terminated_by,
        )

        if engine is not None:
            try:
                engine.stop()
            except Exception as e:
                logger.debug("Error stopping engine during termination: %s", e)

        self._self_destruct.execute()
        self._exit(0)
