"""HubSpot companies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from src.hubsync.config import Settings
from src.hubsync.entities.adapter import EntityAdapter, FieldSpec
from src.hubsync.entities.entity import Entity
from src.hubsync.entities.interfaces import AssociationDirection, EntityKind
from src.hubsync.entities.manager import EntityManager
from src.hubsync.model.codecs import str_or_empty

if TYPE_CHECKING:
    from src.hubsync.model.contact import Contact
    from src.hubsync.model.deal import Deal


@dataclass
class CompanyData:
    name: str
    type: Literal["Partner"] | None = None


@dataclass(frozen=True)
class CompanyComputed:
    pass


class Company(Entity):

    @property
    def contacts(self) -> set[Contact]:
        return self.associations_of(EntityKind.CONTACT)  # type: ignore[return-value]

    @property
    def deals(self) -> set[Deal]:
        return self.associations_of(EntityKind.DEAL)  # type: ignore[return-value]


def build_company_adapter(settings: Settings) -> EntityAdapter:
    return EntityAdapter(
        data_type=CompanyData,
        computed_type=CompanyComputed,
        associations={
            EntityKind.CONTACT: AssociationDirection.DOWN,
            EntityKind.DEAL: AssociationDirection.DOWN,
        },
        data={
            "name": FieldSpec(property="name", down=str_or_empty, up=str_or_empty),
            "type": FieldSpec(
                property="type",
                down=lambda value: "Partner" if value == "PARTNER" else None,
                up=lambda value: "PARTNER" if value == "Partner" else "",
            ),
        },
    )


class CompanyManager(EntityManager[Company]):

    kind = EntityKind.COMPANY
    entity_class = Company

    def _build_adapter(self, settings: Settings) -> EntityAdapter:
        return build_company_adapter(settings)
