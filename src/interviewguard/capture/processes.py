"""Running-process listing via psutil."""

from __future__ import annotations

import logging

import psutil

from interviewguard.errors import SystemQueryFailure

logger = logging.getLogger(__name__)


def running_process_names() -> set[str]:
    """Names of all processes currently visible to this user."""
    names: set[str] = set()
    try:
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info.get("name") or proc.name()
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            if name:
                names.add(name)
    except (psutil.Error, OSError) as e:
        raise SystemQueryFailure(f"Process listing failed: {e}") from e
    return names


def process_name(pid: int, default: str = "Unknown") -> str:
    """Best-effort name lookup for a single PID."""
    if pid <= 0:
        return default
    try:
        return psutil.Process(pid).name() or default
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return default
