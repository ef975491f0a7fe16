"""Window classifier: hot path, matches one window against the signature tables."""

from __future__ import annotations

from typing import NamedTuple

from interviewguard.session.models import ViolationKind, WindowRecord
from interviewguard.signatures.models import SignatureTables

COVERAGE_THRESHOLD = 0.7
LAYER_ANOMALY_THRESHOLD = 20
OVERLAY_MIN_WIDTH = 500
OVERLAY_MIN_HEIGHT = 300


class Match(NamedTuple):
    """One category a window falls into, with a human-readable description."""

    kind: ViolationKind
    details: str


class WindowClassifier:
    """Classifies windows against lowered signature tables.

    Every rule is evaluated independently, so one window may match several
    categories in a single pass. Each category matches at most once.
    """

    def __init__(self, signatures: SignatureTables) -> None:
        self.signatures = signatures
        self._coding_tools = _lowered(signatures.coding_tools)
        self._overlay = _lowered(signatures.overlay)
        self._recording = _lowered(signatures.recording)
        self._system_processes = frozenset(signatures.system_processes)

    def classify(self, window: WindowRecord, screen_area: float = 0.0) -> list[Match]:
        process = window.owner_process_name
        title = window.title
        combined = f"{title.lower()} {process.lower()}"
        matches: list[Match] = []

        if _contains_any(combined, self._coding_tools):
            matches.append(
                Match(
                    ViolationKind.CODING_INTERVIEW_TOOL,
                    f"Coding interview tool detected: {process} - {title}",
                )
            )

        if _contains_any(combined, self._overlay) and (
            window.layer > 0 or coverage_ratio(window, screen_area) > COVERAGE_THRESHOLD
        ):
            matches.append(
                Match(
                    ViolationKind.SUSPICIOUS_OVERLAY,
                    f"Suspicious overlay detected: {process} - {title}",
                )
            )

        if (
            window.layer > LAYER_ANOMALY_THRESHOLD
            and process not in self._system_processes
        ):
            matches.append(
                Match(
                    ViolationKind.LAYER_ANOMALY,
                    f"High layer window detected: {process} at layer {window.layer}",
                )
            )

        if (
            window.bounds.width > OVERLAY_MIN_WIDTH
            and window.bounds.height > OVERLAY_MIN_HEIGHT
            and not title
            and window.layer > 0
        ):
            matches.append(
                Match(
                    ViolationKind.TRANSPARENT_OVERLAY,
                    f"Potential transparent overlay: {process}",
                )
            )

        if _contains_any(combined, self._recording):
            matches.append(
                Match(
                    ViolationKind.SCREEN_RECORDING,
                    f"Screen recording/sharing detected: {process}",
                )
            )

        return matches


def classify(
    window: WindowRecord, signatures: SignatureTables, screen_area: float = 0.0
) -> list[Match]:
    """Classify a single window. Returns every matching category, in rule order."""
    return WindowClassifier(signatures).classify(window, screen_area)


def coverage_ratio(window: WindowRecord, screen_area: float) -> float:
    """Fraction of the primary screen covered by the window (0 if unknown)."""
    if screen_area <= 0:
        return 0.0
    return window.bounds.area / screen_area


def _lowered(keywords: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(k.lower() for k in keywords if k)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)
