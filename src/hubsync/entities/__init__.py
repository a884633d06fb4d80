"""Generic entity synchronization engine.

Mirrors HubSpot records as typed local entities, tracks field and
association changes since the last round-trip, and pushes them back in
batches.

Exports:
    EntityAdapter / FieldSpec / ComputedSpec: Declarative per-kind mapping.
    Entity: One mirrored record with its change ledger.
    Index: Secondary key -> entity lookup.
    EntityManager: Lifecycle and sync orchestration for one kind.
    Database: Cross-kind registry and run phases.
    SyncError and subclasses: Fatal run errors.
"""

from __future__ import annotations

from src.hubsync.entities.adapter import ComputedSpec, EntityAdapter, FieldSpec
from src.hubsync.entities.entity import AssociationChange, AssociationOp, Entity
from src.hubsync.entities.errors import (
    ConfigurationMappingError,
    IdentityResolutionError,
    ReferentialIntegrityError,
    SyncError,
)
from src.hubsync.entities.index import Index
from src.hubsync.entities.interfaces import AssociationDirection, EntityKind

__all__ = [
    "AssociationChange",
    "AssociationDirection",
    "AssociationOp",
    "ComputedSpec",
    "ConfigurationMappingError",
    "Database",
    "Entity",
    "EntityAdapter",
    "EntityKind",
    "EntityManager",
    "FieldSpec",
    "IdentityResolutionError",
    "Index",
    "ReferentialIntegrityError",
    "SyncError",
]


def __getattr__(name: str):  # noqa: N807
    """Lazy-load the manager and database to avoid circular imports with model."""
    if name == "EntityManager":
        from src.hubsync.entities.manager import EntityManager

        return EntityManager
    if name == "Database":
        from src.hubsync.entities.database import Database

        return Database
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
