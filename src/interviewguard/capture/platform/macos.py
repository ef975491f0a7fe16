"""macOS window enumeration through the Quartz window server API.

Requires pyobjc-framework-Quartz and the Screen Recording privacy
permission. Without the permission, window titles are withheld and
CGPreflightScreenCaptureAccess reports False.
"""

from __future__ import annotations

import logging
from typing import Any

from interviewguard.errors import PermissionDenied, SystemQueryFailure
from interviewguard.session.models import Bounds, WindowRecord

logger = logging.getLogger(__name__)


def _quartz() -> Any:
    try:
        import Quartz
    except ImportError as e:
        raise PermissionDenied("Quartz bindings (pyobjc) are not installed") from e
    return Quartz


class QuartzWindowProvider:
    """Lists on-screen windows via CGWindowListCopyWindowInfo."""

    def check_permission(self) -> None:
        quartz = _quartz()

        preflight = getattr(quartz, "CGPreflightScreenCaptureAccess", None)
        if preflight is not None and not preflight():
            raise PermissionDenied("Screen recording permission not granted")

        info = quartz.CGWindowListCopyWindowInfo(
            quartz.kCGWindowListOptionOnScreenOnly, quartz.kCGNullWindowID
        )
        if info is None:
            raise PermissionDenied("Window list unavailable")

    def snapshot(self) -> list[WindowRecord]:
        quartz = _quartz()
        options = (
            quartz.kCGWindowListOptionOnScreenOnly
            | quartz.kCGWindowListExcludeDesktopElements
        )
        info = quartz.CGWindowListCopyWindowInfo(options, quartz.kCGNullWindowID)
        if info is None:
            raise SystemQueryFailure("CGWindowListCopyWindowInfo returned no data")

        windows: list[WindowRecord] = []
        for entry in info:
            record = _parse_window(entry)
            if record is not None and record.is_on_screen:
                windows.append(record)
        return windows

    def primary_screen_area(self) -> float:
        quartz = _quartz()
        try:
            rect = quartz.CGDisplayBounds(quartz.CGMainDisplayID())
        except Exception as e:  # pyobjc surfaces bridge errors as plain exceptions
            logger.debug("Could not read main display bounds: %s", e)
            return 0.0
        return float(rect.size.width) * float(rect.size.height)


def _parse_window(entry: Any) -> WindowRecord | None:
    """Convert one CGWindow dictionary. Returns None if required keys are missing."""
    window_id = entry.get("kCGWindowNumber")
    owner_pid = entry.get("kCGWindowOwnerPID")
    bounds = entry.get("kCGWindowBounds")
    on_screen = entry.get("kCGWindowIsOnscreen")
    if window_id is None or owner_pid is None or bounds is None or on_screen is None:
        return None

    return WindowRecord(
        id=int(window_id),
        owner_process_name=str(entry.get("kCGWindowOwnerName") or "Unknown"),
        title=str(entry.get("kCGWindowName") or ""),
        layer=int(entry.get("kCGWindowLayer") or 0),
        bounds=Bounds(
            x=float(bounds.get("X", 0)),
            y=float(bounds.get("Y", 0)),
            width=float(bounds.get("Width", 0)),
            height=float(bounds.get("Height", 0)),
        ),
        is_on_screen=bool(on_screen),
        owner_pid=int(owner_pid),
    )
