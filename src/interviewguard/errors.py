"""Detection error taxonomy."""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for failures raised by the detection stack."""


class PermissionDenied(DetectionError):
    """The OS refused window enumeration. Monitoring cannot start."""


class SystemQueryFailure(DetectionError):
    """A single OS query failed. The current tick is skipped."""


class UnknownDetectionFailure(DetectionError):
    """Unexpected failure inside a detection pass."""


class ScreenshotSourceError(DetectionError):
    """A screenshot source (keyboard hook or file watch) failed to register."""
