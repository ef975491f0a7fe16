"""Session data models: observed windows, violations, and session state."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field


class Phase(enum.Enum):
    """Lifecycle state of a monitoring session. TERMINATING is final."""

    IDLE = "idle"
    MONITORING = "monitoring"
    TERMINATING = "terminating"


class Criticality(enum.Enum):
    """Whether a violation ends the session or is only recorded."""

    CRITICAL = "critical"
    ADVISORY = "advisory"


class ViolationKind(enum.Enum):
    """Category of detected violation. Values are the wire identifiers."""

    SUSPICIOUS_OVERLAY = "suspicious_overlay"
    LAYER_ANOMALY = "layer_anomaly"
    TRANSPARENT_OVERLAY = "transparent_overlay"
    SCREEN_RECORDING = "screen_recording"
    CODING_INTERVIEW_TOOL = "coding_interview_tool"
    SCREENSHOT_DETECTED = "screenshot_detected"

    @property
    def criticality(self) -> Criticality:
        if self in _ADVISORY_KINDS:
            return Criticality.ADVISORY
        return Criticality.CRITICAL

    @property
    def is_critical(self) -> bool:
        return self.criticality is Criticality.CRITICAL


_ADVISORY_KINDS = frozenset(
    {ViolationKind.LAYER_ANOMALY, ViolationKind.TRANSPARENT_OVERLAY}
)


@dataclass(frozen=True)
class Bounds:
    """Window geometry in screen coordinates."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class WindowRecord:
    """One visible window as observed at poll time."""

    id: int
    owner_process_name: str
    title: str = ""
    layer: int = 0
    bounds: Bounds = field(default_factory=Bounds)
    is_on_screen: bool = True
    owner_pid: int = 0

    @classmethod
    def placeholder(cls, process_name: str) -> WindowRecord:
        """Synthetic record for events that implicate no real window."""
        return cls(
            id=0,
            owner_process_name=process_name,
            title="Screenshot Detection",
            layer=0,
            bounds=Bounds(),
            is_on_screen=True,
            owner_pid=0,
        )


@dataclass(frozen=True)
class ViolationEvent:
    """A single detected violation, consumed once by the session controller."""

    kind: ViolationKind
    details: str
    window: WindowRecord
    timestamp: float = field(default_factory=time.time)


@dataclass
class SessionState:
    """Process-wide session identity and phase.

    Mutated only by SessionController, under its lock.
    """

    session_id: str = ""
    phase: Phase = Phase.IDLE
    started_at: float | None = None
    terminated_by: str = ""
