"""Linux (X11) window enumeration via wmctrl, xprop and xrandr."""

from __future__ import annotations

import logging
import re
import subprocess

from interviewguard.capture.processes import process_name
from interviewguard.errors import PermissionDenied, SystemQueryFailure
from interviewguard.session.models import Bounds, WindowRecord

logger = logging.getLogger(__name__)

# Layer reported for _NET_WM_STATE_ABOVE windows (matches the macOS floating level)
ABOVE_LAYER = 3

_SKIP_WINDOW_TYPES = {
    "_NET_WM_WINDOW_TYPE_DESKTOP",
    "_NET_WM_WINDOW_TYPE_DOCK",
}

_XRANDR_OUTPUT = re.compile(r" connected (primary )?(\d+)x(\d+)\+")


class X11WindowProvider:
    """Lists managed windows through an EWMH-compliant window manager."""

    def check_permission(self) -> None:
        try:
            result = subprocess.run(
                ["wmctrl", "-m"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except FileNotFoundError as e:
            raise PermissionDenied("wmctrl is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise PermissionDenied("Window manager did not respond") from e

        if result.returncode != 0:
            raise PermissionDenied(
                f"Cannot query window manager: {result.stderr.strip() or 'no display'}"
            )

    def snapshot(self) -> list[WindowRecord]:
        try:
            result = subprocess.run(
                ["wmctrl", "-lpG"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise SystemQueryFailure(f"wmctrl failed: {e}") from e

        if result.returncode != 0:
            raise SystemQueryFailure(f"wmctrl exited with {result.returncode}")

        windows: list[WindowRecord] = []
        for line in result.stdout.splitlines():
            record = _parse_wmctrl_line(line)
            if record is None:
                continue

            window_type, states = _window_properties(record.id)
            if window_type in _SKIP_WINDOW_TYPES:
                continue
            if "_NET_WM_STATE_HIDDEN" in states:
                continue

            layer = ABOVE_LAYER if "_NET_WM_STATE_ABOVE" in states else 0
            windows.append(
                WindowRecord(
                    id=record.id,
                    owner_process_name=process_name(record.owner_pid),
                    title=record.title,
                    layer=layer,
                    bounds=record.bounds,
                    is_on_screen=True,
                    owner_pid=record.owner_pid,
                )
            )
        return windows

    def primary_screen_area(self) -> float:
        try:
            result = subprocess.run(
                ["xrandr", "--current"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return 0.0
        return _parse_xrandr_area(result.stdout)


def _parse_wmctrl_line(line: str) -> WindowRecord | None:
    """Parse a `wmctrl -lpG` line: id desktop pid x y w h host [title]."""
    parts = line.split(None, 8)
    if len(parts) < 8:
        return None

    try:
        window_id = int(parts[0], 16)
        pid = int(parts[2])
        x, y, width, height = (float(p) for p in parts[3:7])
    except ValueError:
        return None

    return WindowRecord(
        id=window_id,
        owner_process_name="",
        title=parts[8].strip() if len(parts) > 8 else "",
        bounds=Bounds(x=x, y=y, width=width, height=height),
        owner_pid=pid,
    )


def _window_properties(window_id: int) -> tuple[str, set[str]]:
    """Return (_NET_WM_WINDOW_TYPE, _NET_WM_STATE atoms) for a window."""
    try:
        result = subprocess.run(
            ["xprop", "-id", hex(window_id), "_NET_WM_WINDOW_TYPE", "_NET_WM_STATE"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return "", set()
    return _parse_xprop(result.stdout)


def _parse_xprop(output: str) -> tuple[str, set[str]]:
    window_type = ""
    states: set[str] = set()
    for line in output.splitlines():
        if "=" not in line:
            continue  # "not found." lines
        key, _, value = line.partition("=")
        atoms = [a.strip() for a in value.split(",") if a.strip()]
        if key.startswith("_NET_WM_WINDOW_TYPE") and atoms:
            window_type = atoms[0]
        elif key.startswith("_NET_WM_STATE"):
            states.update(atoms)
    return window_type, states


def _parse_xrandr_area(output: str) -> float:
    first: float = 0.0
    for match in _XRANDR_OUTPUT.finditer(output):
        area = float(match.group(2)) * float(match.group(3))
        if match.group(1):
            return area
        if not first:
            first = area
    return first
