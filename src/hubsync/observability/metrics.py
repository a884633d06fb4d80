"""Prometheus counters for entity synchronization.

Mirrors the per-manager run counters (created/updated/associated/disassociated)
into process-wide Prometheus metrics so a long-lived scheduler can export them.
"""

from __future__ import annotations

from prometheus_client import Counter

# ── Sync Metrics ─────────────────────────────────────────────────────────────

entities_synced_total = Counter(
    "hubsync_entities_synced_total",
    "Total entities and associations written to HubSpot",
    ["kind", "operation"],
)

entities_downloaded_total = Counter(
    "hubsync_entities_downloaded_total",
    "Total entities decoded from HubSpot downloads",
    ["kind"],
)

entities_rejected_total = Counter(
    "hubsync_entities_rejected_total",
    "Total raw records discarded by an adapter reject predicate",
    ["kind"],
)


def record_synced(kind: str, operation: str, count: int) -> None:
    """Add ``count`` to the synced counter for one kind and operation."""
    if count:
        entities_synced_total.labels(kind=kind, operation=operation).inc(count)


def record_downloaded(kind: str, count: int) -> None:
    if count:
        entities_downloaded_total.labels(kind=kind).inc(count)


def record_rejected(kind: str, count: int) -> None:
    if count:
        entities_rejected_total.labels(kind=kind).inc(count)
