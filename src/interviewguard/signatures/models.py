"""Signature tables: the keyword sets windows and processes are checked against."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SignatureTables:
    """A complete, immutable set of detection signatures.

    Keyword tables are matched as case-insensitive substrings. Process
    allow-lists and the blacklist are exact, case-sensitive names.
    """

    name: str
    coding_tools: tuple[str, ...] = ()
    overlay: tuple[str, ...] = ()
    recording: tuple[str, ...] = ()
    system_processes: tuple[str, ...] = ()
    blacklist: tuple[str, ...] = ()
    screenshot_prefixes: tuple[str, ...] = ("Screenshot", "Screen Shot")
    description: str = ""
    inherit: tuple[str, ...] = ()
