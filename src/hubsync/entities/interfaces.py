"""Entity kinds, raw record schemas, and the transport collaborator contracts.

The entity managers never talk to HubSpot directly. They consume two
collaborators:

- EntityDownloader: fetches every raw record of one kind as a property bag
  plus ``kind:id`` association references.
- EntityUploader: bulk create/update of property bags and bulk
  create/delete of associations.

Concrete implementations live in ``src.hubsync.io``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, Field

from src.hubsync.observability.progress import Progress

HubspotProperties = dict[str, str | None]


# ── Kinds ───────────────────────────────────────────────────────────────────


class EntityKind(str, Enum):
    """Kinds of HubSpot records mirrored locally."""

    CONTACT = "contact"
    COMPANY = "company"
    DEAL = "deal"


class AssociationDirection(str, Enum):
    """Sync direction of an association between two kinds.

    DOWN associations are only read from HubSpot; DOWN_UP associations are
    also written back when changed locally.
    """

    DOWN = "down"
    DOWN_UP = "down/up"

    @property
    def is_down(self) -> bool:
        return "down" in self.value

    @property
    def is_up(self) -> bool:
        return "up" in self.value


def make_association_ref(kind: EntityKind, entity_id: str) -> str:
    """Build a ``kind:id`` association reference."""
    return f"{kind.value}:{entity_id}"


def parse_association_ref(ref: str) -> tuple[str, str]:
    """Split a ``kind:id`` association reference into kind name and id.

    The kind name is returned as-is; it may name a kind not mirrored locally.

    Raises:
        ValueError: If the reference is malformed.
    """
    kind, sep, entity_id = ref.partition(":")
    if not kind or not sep or not entity_id:
        msg = f"Malformed association reference: {ref!r}"
        raise ValueError(msg)
    return kind, entity_id


# ── Raw Records ─────────────────────────────────────────────────────────────


class RawEntity(BaseModel):
    """One downloaded HubSpot record before decoding."""

    id: str
    properties: dict[str, str | None] = Field(default_factory=dict)
    associations: list[str] = Field(default_factory=list)


class EntityCreate(BaseModel):
    """Property payload for one record in a bulk create."""

    properties: dict[str, str]


class EntityUpdate(BaseModel):
    """Property payload for one record in a bulk update."""

    id: str
    properties: dict[str, str]


class CreatedEntity(BaseModel):
    """One result of a bulk create, in no guaranteed order."""

    id: str
    properties: dict[str, str | None] = Field(default_factory=dict)


class AssociationInput(BaseModel):
    """One association to create or delete."""

    from_id: str
    to_id: str
    to_type: EntityKind


# ── Collaborators ───────────────────────────────────────────────────────────


class EntityDownloader(ABC):
    """Abstract interface for downloading raw records of one kind."""

    @abstractmethod
    async def download_entities(
        self,
        progress: Progress,
        kind: EntityKind,
        properties: list[str],
        associations: list[EntityKind],
    ) -> list[RawEntity]:
        """Fetch every record of ``kind`` with the requested properties and associations."""
        ...


class EntityUploader(ABC):
    """Abstract interface for bulk writes to the remote record store."""

    @abstractmethod
    async def create_entities(
        self, kind: EntityKind, entities: list[EntityCreate]
    ) -> list[CreatedEntity]:
        """Create records, return results with their new ids (order not guaranteed)."""
        ...

    @abstractmethod
    async def update_entities(self, kind: EntityKind, entities: list[EntityUpdate]) -> None:
        """Update properties of existing records by id."""
        ...

    @abstractmethod
    async def create_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        """Create associations from ``from_kind`` records to ``to_kind`` records."""
        ...

    @abstractmethod
    async def delete_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        """Delete associations from ``from_kind`` records to ``to_kind`` records."""
        ...
