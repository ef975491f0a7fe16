"""Alert action: logs violations and hands structured records to a sink."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from interviewguard.session.models import ViolationEvent

logger = logging.getLogger(__name__)

PROHIBITED_APPLICATION = "prohibited_application"

AlertRecord = dict[str, Any]


class AlertAction:
    """Logs violation details, optionally appends them to a JSON-lines file,
    and optionally invokes a callback (e.g. a remote telemetry client).
    """

    def __init__(
        self,
        callback: Callable[[AlertRecord], None] | None = None,
        log_path: Path | None = None,
    ) -> None:
        self._callback = callback
        self._log_path = log_path

    @staticmethod
    def build_record(session_id: str, event: ViolationEvent) -> AlertRecord:
        window = event.window
        return {
            "session_id": session_id,
            "violation_type": event.kind.value,
            "details": event.details,
            "window_info": {
                "window_id": window.id,
                "process_name": window.owner_process_name,
                "window_title": window.title,
                "window_layer": window.layer,
                "bounds": {
                    "x": window.bounds.x,
                    "y": window.bounds.y,
                    "width": window.bounds.width,
                    "height": window.bounds.height,
                },
                "is_on_screen": window.is_on_screen,
                "owner_pid": window.owner_pid,
            },
            "timestamp": event.timestamp,
        }

    def execute(self, session_id: str, event: ViolationEvent) -> AlertRecord:
        level = logging.WARNING if event.kind.is_critical else logging.INFO
        logger.log(
            level,
            "VIOLATION [%s] session=%s: %s (pid %d, layer %d)",
            event.kind.value,
            session_id,
            event.details,
            event.window.owner_pid,
            event.window.layer,
        )
        record = self.build_record(session_id, event)
        self._deliver(record)
        return record

    def execute_process(self, session_id: str, app_name: str) -> AlertRecord:
        logger.warning(
            "PROHIBITED APPLICATION session=%s: %s", session_id, app_name
        )
        record: AlertRecord = {
            "session_id": session_id,
            "violation_type": PROHIBITED_APPLICATION,
            "details": f"Prohibited application running: {app_name}",
            "timestamp": time.time(),
        }
        self._deliver(record)
        return record

    def _deliver(self, record: AlertRecord) -> None:
        if self._log_path is not None:
            try:
                self._log_path.parent.mkdir(parents=True, exist_ok=True)
                with self._log_path.open("a", encoding="utf-8") as f:
                    f.write(json.dumps(record) + "\n")
            except OSError as e:
                logger.error("Failed to write alert log %s: %s", self._log_path, e)
        if self._callback:
            try:
                self._callback(record)
            except Exception as e:
                logger.error("Alert callback failed: %s", e)
