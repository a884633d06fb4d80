"""Observability package for structured logging, sync metrics, and progress.

Provides:
- configure_structlog: Install structlog processors for the current environment
- record_synced / record_downloaded / record_rejected: Prometheus sync counters
- Progress / LogProgress / NullProgress: Download progress reporting
"""

from __future__ import annotations


def __getattr__(name: str):
    if name == "configure_structlog":
        from src.hubsync.observability.logging import configure_structlog
        return configure_structlog
    if name in ("record_synced", "record_downloaded", "record_rejected"):
        from src.hubsync.observability import metrics
        return getattr(metrics, name)
    if name in ("Progress", "LogProgress", "NullProgress"):
        from src.hubsync.observability import progress
        return getattr(progress, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "LogProgress",
    "NullProgress",
    "Progress",
    "configure_structlog",
    "record_downloaded",
    "record_rejected",
    "record_synced",
]
