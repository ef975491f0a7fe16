"""Windows window enumeration via pywin32."""

from __future__ import annotations

import logging
from typing import Any

from interviewguard.capture.processes import process_name
from interviewguard.errors import PermissionDenied, SystemQueryFailure
from interviewguard.session.models import Bounds, WindowRecord

logger = logging.getLogger(__name__)

GWL_EXSTYLE = -20
WS_EX_TOPMOST = 0x00000008
SM_CXSCREEN = 0
SM_CYSCREEN = 1

# Layer reported for always-on-top windows (matches the macOS floating level)
TOPMOST_LAYER = 3

# Desktop shell windows, never candidates
_DESKTOP_CLASSES = {"Progman", "WorkerW", "Shell_TrayWnd"}


def _win32() -> tuple[Any, Any, Any]:
    try:
        import win32api
        import win32gui
        import win32process
    except ImportError as e:
        raise PermissionDenied("pywin32 is not installed") from e
    return win32api, win32gui, win32process


class Win32WindowProvider:
    """Lists top-level visible windows with EnumWindows."""

    def check_permission(self) -> None:
        _win32()

    def snapshot(self) -> list[WindowRecord]:
        _, win32gui, win32process = _win32()
        handles: list[int] = []

        def _collect(hwnd: int, acc: list[int]) -> bool:
            acc.append(hwnd)
            return True

        try:
            win32gui.EnumWindows(_collect, handles)
        except win32gui.error as e:
            raise SystemQueryFailure(f"EnumWindows failed: {e}") from e

        windows: list[WindowRecord] = []
        for hwnd in handles:
            try:
                if not win32gui.IsWindowVisible(hwnd) or win32gui.IsIconic(hwnd):
                    continue
                if win32gui.GetClassName(hwnd) in _DESKTOP_CLASSES:
                    continue
                left, top, right, bottom = win32gui.GetWindowRect(hwnd)
                _, pid = win32process.GetWindowThreadProcessId(hwnd)
                exstyle = win32gui.GetWindowLong(hwnd, GWL_EXSTYLE)
                title = win32gui.GetWindowText(hwnd) or ""
            except win32gui.error:
                continue  # window vanished mid-enumeration

            windows.append(
                WindowRecord(
                    id=int(hwnd),
                    owner_process_name=process_name(pid),
                    title=title,
                    layer=TOPMOST_LAYER if exstyle & WS_EX_TOPMOST else 0,
                    bounds=Bounds(
                        x=float(left),
                        y=float(top),
                        width=float(right - left),
                        height=float(bottom - top),
                    ),
                    is_on_screen=True,
                    owner_pid=int(pid),
                )
            )
        return windows

    def primary_screen_area(self) -> float:
        win32api, _, _ = _win32()
        return float(win32api.GetSystemMetrics(SM_CXSCREEN)) * float(
            win32api.GetSystemMetrics(SM_CYSCREEN)
        )
