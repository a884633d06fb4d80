"""Download progress reporting.

The download collaborator receives a Progress handle and ticks it as records
arrive. The HubSpot list endpoint reports no total, so progress is a running
count. LogProgress writes structlog events; tests and callers that do not
care can use NullProgress.
"""

from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class Progress(Protocol):
    """Progress handle passed into downloads."""

    def tick(self, count: int = 1) -> None: ...


class NullProgress:
    """Progress handle that discards all updates."""

    def tick(self, count: int = 1) -> None:
        pass


class LogProgress:
    """Progress handle that logs each tick with a running count.

    Args:
        label: Name of the download being tracked (e.g. "contact").
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self.done = 0

    def tick(self, count: int = 1) -> None:
        self.done += count
        logger.debug("progress.tick", label=self._label, done=self.done)
