"""Local, typed mirror of one HubSpot record with change tracking.

An Entity holds:

- ``id``: the HubSpot id, None until the first successful remote create.
- ``data``: typed fields (a dataclass instance), freely mutable by business logic.
- ``computed``: derived values fixed at decode time (or adapter defaults).
- a property baseline: the last synchronized encoded value per field.
  A field is changed when its freshly encoded value differs from the baseline.
- associations: one set of related entities per declared related kind,
  plus an ordered ledger of association operations not yet pushed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.hubsync.entities.adapter import EntityAdapter
from src.hubsync.entities.errors import ReferentialIntegrityError
from src.hubsync.entities.interfaces import EntityKind


class AssociationOp(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class AssociationChange:
    """One pending association operation from this entity to ``other``."""

    op: AssociationOp
    other: Entity


class Entity:
    """Base class for all mirrored HubSpot records.

    Args:
        id: HubSpot id, or None for a locally created entity.
        kind: Entity kind governed by ``adapter``.
        data: Typed data (instance of ``adapter.data_type``).
        computed: Computed values (instance of ``adapter.computed_type``).
        adapter: The kind's adapter, used to encode data for diffing.
        baseline: Encoded values known to be in HubSpot, keyed by field name.
            Empty for locally created entities, so every field uploads.
    """

    def __init__(
        self,
        id: str | None,
        kind: EntityKind,
        data: Any,
        computed: Any,
        adapter: EntityAdapter,
        baseline: dict[str, str] | None = None,
    ) -> None:
        self._id = id
        self.kind = kind
        self.data = data
        self.computed = computed
        self._adapter = adapter
        self._baseline: dict[str, str] = dict(baseline or {})
        self._associations: dict[EntityKind, set[Entity]] = {
            related: set() for related in adapter.associations
        }
        self._pending: list[AssociationChange] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} id={self._id}>"

    # ── Identity ────────────────────────────────────────────────────────────

    @property
    def id(self) -> str | None:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        if self._id is not None:
            msg = f"{self!r} already has an id; refusing to set {value!r}"
            raise ValueError(msg)
        self._id = value

    def guaranteed_id(self) -> str:
        """Return the HubSpot id, raising if this entity was never created remotely."""
        if self._id is None:
            raise ReferentialIntegrityError(
                self.kind.value, None, "entity has not been created in HubSpot yet"
            )
        return self._id

    # ── Property Changes ────────────────────────────────────────────────────

    def get_property_changes(self) -> dict[str, str]:
        """Encoded values of the fields that differ from the baseline, by field name."""
        return {
            name: encoded
            for name, encoded in self._adapter.encode_data(self.data).items()
            if self._baseline.get(name) != encoded
        }

    def has_property_changes(self) -> bool:
        return bool(self.get_property_changes())

    def apply_property_changes(self, changes: dict[str, str]) -> None:
        """Record ``changes`` as synchronized: they become the new baseline."""
        self._baseline.update(changes)

    # ── Associations ────────────────────────────────────────────────────────

    def associations_of(self, kind: EntityKind) -> set[Entity]:
        """Current related entities of one kind (pending changes included)."""
        return self._slot(kind)

    def add_association(
        self,
        other: Entity,
        *,
        first_side: bool = True,
        initial: bool = False,
    ) -> None:
        """Associate ``other`` with this entity, and this entity with ``other``.

        ``initial`` associations come from a download and are already in
        HubSpot, so nothing is queued. Otherwise the operation is queued once
        per pair, in the ledger of the side that pushes it. Adding an existing
        association is a no-op.
        """
        slot = self._slot(other.kind)
        if first_side:
            other._slot(self.kind)
        if other in slot:
            return
        slot.add(other)
        if first_side:
            if not initial:
                self._queue(AssociationOp.ADD, other)
            other.add_association(self, first_side=False, initial=initial)

    def remove_association(self, other: Entity, *, first_side: bool = True) -> None:
        """Dissociate ``other`` from this entity on both sides. Removing a missing association is a no-op."""
        slot = self._slot(other.kind)
        if other not in slot:
            return
        slot.discard(other)
        if first_side:
            self._queue(AssociationOp.REMOVE, other)
            other.remove_association(self, first_side=False)

    def has_association_changes(self) -> bool:
        return bool(self._pending)

    def get_association_changes(self) -> list[AssociationChange]:
        return list(self._pending)

    def apply_association_changes(self) -> None:
        """Mark every pending association operation as synchronized."""
        self._pending.clear()

    def _ledger_side(self, other: Entity) -> tuple[Entity, Entity]:
        """Entity whose ledger records a change to this pair, and the entity it points at.

        Changes go to the side that declares the other kind bidirectional, so
        opposite operations on a pair always meet in one ledger. When both or
        neither side push, this entity keeps the change.
        """
        pushes = self._adapter.associations[other.kind].is_up
        pulled = other._adapter.associations[self.kind].is_up
        if not pushes and pulled:
            return other, self
        return self, other

    def _queue(self, op: AssociationOp, other: Entity) -> None:
        owner, target = self._ledger_side(other)
        # Opposite ops on the same pair cancel out, whichever ledger holds them
        if owner._cancel_opposite(op, target) or target._cancel_opposite(op, owner):
            return
        owner._pending.append(AssociationChange(op=op, other=target))

    def _cancel_opposite(self, op: AssociationOp, other: Entity) -> bool:
        for i, change in enumerate(self._pending):
            if change.other is other and change.op != op:
                del self._pending[i]
                return True
        return False

    def _slot(self, kind: EntityKind) -> set[Entity]:
        try:
            return self._associations[kind]
        except KeyError:
            msg = f"{self.kind.value} entities do not declare associations to {kind.value}"
            raise ValueError(msg) from None
