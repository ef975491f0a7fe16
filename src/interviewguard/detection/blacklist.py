"""Process blacklist monitor: scans running applications for prohibited names."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from interviewguard.capture.processes import running_process_names

logger = logging.getLogger(__name__)


class ProcessBlacklistMonitor:
    """Checks the running-process list against a fixed blacklist.

    Matching is exact and case-sensitive. The first blacklist entry found
    running ends the scan.
    """

    def __init__(
        self,
        blacklist: Iterable[str],
        lister: Callable[[], Iterable[str]] = running_process_names,
    ) -> None:
        self.blacklist = tuple(blacklist)
        self._lister = lister

    def scan(self) -> str | None:
        """Return the first prohibited application currently running, if any.

        Raises SystemQueryFailure when the process list cannot be read.
        """
        if not self.blacklist:
            return None

        running = set(self._lister())
        for name in self.blacklist:
            if name in running:
                logger.debug("Blacklisted application running: %s", name)
                return name
        return None
