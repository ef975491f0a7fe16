"""Pick the window snapshot backend for the running OS."""

from __future__ import annotations

import platform

from interviewguard.capture.base import WindowSnapshotProvider
from interviewguard.errors import PermissionDenied


def default_provider(system: str | None = None) -> WindowSnapshotProvider:
    """Return the native WindowSnapshotProvider for this platform."""
    system = system or platform.system()

    if system == "Darwin":
        from interviewguard.capture.platform.macos import QuartzWindowProvider

        return QuartzWindowProvider()
    if system == "Linux":
        from interviewguard.capture.platform.linux import X11WindowProvider

        return X11WindowProvider()
    if system == "Windows":
        from interviewguard.capture.platform.windows import Win32WindowProvider

        return Win32WindowProvider()

    raise PermissionDenied(f"Window enumeration not supported on {system}")
