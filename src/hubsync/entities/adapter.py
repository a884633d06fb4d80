"""Declarative field and association mapping for one entity kind.

An EntityAdapter says, for one kind:

- which HubSpot property backs each typed data field, how to decode it
  (``str | None`` -> typed value) and encode it back (typed value -> ``str``),
  and whether the field identifies a freshly created record;
- which derived (computed) fields exist, which properties they are derived
  from, and their default for locally created entities;
- which other kinds the entity relates to, and in which direction;
- an optional reject predicate over the raw property bag.

Data and computed values are dataclasses. The adapter checks at construction
that its spec tables cover exactly the dataclass fields, so a missing or
misspelled field fails when the adapter is defined, not mid-sync.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.hubsync.entities.interfaces import (
    AssociationDirection,
    EntityKind,
    HubspotProperties,
)


@dataclass(frozen=True)
class FieldSpec:
    """Mapping between one typed data field and one HubSpot property.

    Attributes:
        property: HubSpot property name, or None when the property is not
            configured (the field then decodes from absence and never uploads).
        down: Decoder. Must accept None and never raise on absence.
        up: Encoder. ``up(down(x))`` must be stable so unchanged values
            produce no diff.
        identifier: Use this field to match local entities against the
            results of a bulk create.
    """

    property: str | None
    down: Callable[[str | None], Any]
    up: Callable[[Any], str]
    identifier: bool = False


@dataclass(frozen=True)
class ComputedSpec:
    """A derived, read-only field computed from the whole property bag.

    Attributes:
        default: Value for entities created locally.
        down: Derivation from the full raw property bag.
        properties: HubSpot properties the derivation reads. These are
            requested at download time even though no data field maps them.
    """

    default: Any
    down: Callable[[HubspotProperties], Any]
    properties: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityAdapter:
    """Complete mapping description for one entity kind.

    Attributes:
        data_type: Dataclass holding the entity's typed data fields.
        computed_type: Dataclass holding the entity's computed fields.
        data: Field spec per data_type field.
        computed: Computed spec per computed_type field.
        associations: Related kinds and their sync direction.
        should_reject: Optional predicate; matching raw records are
            discarded before decoding.
    """

    data_type: type
    computed_type: type
    data: dict[str, FieldSpec]
    computed: dict[str, ComputedSpec] = field(default_factory=dict)
    associations: dict[EntityKind, AssociationDirection] = field(default_factory=dict)
    should_reject: Callable[[HubspotProperties], bool] | None = None

    def __post_init__(self) -> None:
        _check_fields(self.data_type, self.data, "data")
        _check_fields(self.computed_type, self.computed, "computed")

    # ── Download Side ───────────────────────────────────────────────────────

    @property
    def api_properties(self) -> list[str]:
        """Properties to request: mapped fields plus computed dependencies."""
        names: list[str] = []
        for spec in self.data.values():
            if spec.property and spec.property not in names:
                names.append(spec.property)
        for computed_spec in self.computed.values():
            for name in computed_spec.properties:
                if name not in names:
                    names.append(name)
        return names

    @property
    def down_associations(self) -> list[EntityKind]:
        return [kind for kind, direction in self.associations.items() if direction.is_down]

    @property
    def up_associations(self) -> list[EntityKind]:
        return [kind for kind, direction in self.associations.items() if direction.is_up]

    def rejects(self, properties: HubspotProperties) -> bool:
        return self.should_reject is not None and self.should_reject(properties)

    def decode_data(self, properties: HubspotProperties) -> Any:
        """Decode every data field from a raw property bag."""
        values = {
            name: spec.down(properties.get(spec.property) if spec.property else None)
            for name, spec in self.data.items()
        }
        return self.data_type(**values)

    def decode_computed(self, properties: HubspotProperties) -> Any:
        values = {name: spec.down(properties) for name, spec in self.computed.items()}
        return self.computed_type(**values)

    def default_computed(self) -> Any:
        values = {name: spec.default for name, spec in self.computed.items()}
        return self.computed_type(**values)

    # ── Upload Side ─────────────────────────────────────────────────────────

    def encode_data(self, data: Any) -> dict[str, str]:
        """Encode every property-backed field of ``data``, keyed by field name."""
        return {
            name: spec.up(getattr(data, name))
            for name, spec in self.data.items()
            if spec.property
        }

    @property
    def identifiers(self) -> dict[str, FieldSpec]:
        return {
            name: spec
            for name, spec in self.data.items()
            if spec.identifier and spec.property
        }


def _check_fields(cls: type, specs: dict[str, Any], label: str) -> None:
    if not dataclasses.is_dataclass(cls):
        msg = f"{label} type {cls.__name__} must be a dataclass"
        raise ValueError(msg)
    expected = {f.name for f in dataclasses.fields(cls)}
    declared = set(specs)
    if expected != declared:
        msg = (
            f"{label} specs for {cls.__name__} do not match its fields: "
            f"missing={sorted(expected - declared)} extra={sorted(declared - expected)}"
        )
        raise ValueError(msg)
