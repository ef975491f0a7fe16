"""WindowSnapshotProvider protocol: all window-listing backends must satisfy this."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from interviewguard.session.models import WindowRecord


@runtime_checkable
class WindowSnapshotProvider(Protocol):
    """Protocol for OS window enumeration backends."""

    def check_permission(self) -> None:
        """Raise PermissionDenied if the OS refuses window enumeration."""
        ...

    def snapshot(self) -> list[WindowRecord]:
        """Return the visible, non-desktop windows at this instant.

        Raises SystemQueryFailure when the query fails for this call only.
        """
        ...

    def primary_screen_area(self) -> float:
        """Area of the primary display in screen units, or 0.0 if unknown."""
        ...
