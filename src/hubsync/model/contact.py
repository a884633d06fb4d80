"""HubSpot contacts: typed data, adapter, and manager with an email index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from src.hubsync.config import Settings
from src.hubsync.entities.adapter import ComputedSpec, EntityAdapter, FieldSpec
from src.hubsync.entities.entity import Entity
from src.hubsync.entities.interfaces import AssociationDirection, EntityKind
from src.hubsync.entities.manager import EntityManager
from src.hubsync.model.codecs import (
    encode_trimmed,
    format_int,
    join_set,
    optional_str,
    parse_int,
    split_set,
    str_or_empty,
    trimmed_or_none,
)

if TYPE_CHECKING:
    from src.hubsync.model.company import Company
    from src.hubsync.model.deal import Deal

ContactType = Literal["Partner", "Customer"]
Deployment = Literal["Cloud", "Data Center", "Server", "Multiple"]


@dataclass
class ContactData:
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    state: str | None = None
    contact_type: ContactType | None = None
    country: str | None = None
    region: str | None = None
    products: set[str] = field(default_factory=set)
    deployment: Deployment | None = None
    related_products: set[str] = field(default_factory=set)
    license_tier: int | None = None
    last_mpac_event: str | None = None


@dataclass(frozen=True)
class ContactComputed:
    other_emails: tuple[str, ...] = ()


class Contact(Entity):

    @property
    def companies(self) -> set[Company]:
        return self.associations_of(EntityKind.COMPANY)  # type: ignore[return-value]

    @property
    def deals(self) -> set[Deal]:
        return self.associations_of(EntityKind.DEAL)  # type: ignore[return-value]

    @property
    def all_emails(self) -> list[str]:
        return [email for email in (self.data.email, *self.computed.other_emails) if email]

    @property
    def is_external(self) -> bool:
        return not self.data.email or not self.data.contact_type

    @property
    def is_partner(self) -> bool:
        return self.data.contact_type == "Partner"

    @property
    def is_customer(self) -> bool:
        return self.data.contact_type == "Customer"


def _attr(name: str) -> str | None:
    return name or None


def build_contact_adapter(settings: Settings) -> EntityAdapter:
    """Contact adapter wired to the configured custom property names."""
    return EntityAdapter(
        data_type=ContactData,
        computed_type=ContactComputed,
        associations={
            EntityKind.COMPANY: AssociationDirection.DOWN_UP,
            EntityKind.DEAL: AssociationDirection.DOWN,
        },
        data={
            "email": FieldSpec(
                property="email",
                identifier=True,
                down=str_or_empty,
                up=str_or_empty,
            ),
            "contact_type": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_CONTACT_TYPE_ATTR),
                down=optional_str,
                up=str_or_empty,
            ),
            "country": FieldSpec(property="country", down=optional_str, up=str_or_empty),
            "region": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_REGION_ATTR),
                down=optional_str,
                up=str_or_empty,
            ),
            "first_name": FieldSpec(property="firstname", down=trimmed_or_none, up=encode_trimmed),
            "last_name": FieldSpec(property="lastname", down=trimmed_or_none, up=encode_trimmed),
            "phone": FieldSpec(property="phone", down=trimmed_or_none, up=encode_trimmed),
            "city": FieldSpec(property="city", down=trimmed_or_none, up=encode_trimmed),
            "state": FieldSpec(property="state", down=trimmed_or_none, up=encode_trimmed),
            "related_products": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_RELATED_PRODUCTS_ATTR),
                down=split_set,
                up=join_set,
            ),
            "license_tier": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_LICENSE_TIER_ATTR),
                down=parse_int,
                up=format_int,
            ),
            "deployment": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_DEPLOYMENT_ATTR),
                down=optional_str,
                up=str_or_empty,
            ),
            "products": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_PRODUCTS_ATTR),
                down=split_set,
                up=join_set,
            ),
            "last_mpac_event": FieldSpec(
                property=_attr(settings.HUBSPOT_CONTACT_LAST_MPAC_EVENT_ATTR),
                down=optional_str,
                up=str_or_empty,
            ),
        },
        computed={
            "other_emails": ComputedSpec(
                default=(),
                down=lambda props: tuple(
                    email for email in (props.get("hs_additional_emails") or "").split(";") if email
                ),
                properties=("hs_additional_emails",),
            ),
        },
    )


class ContactManager(EntityManager[Contact]):
    """Manages contacts; every primary and additional email is indexed."""

    kind = EntityKind.CONTACT
    entity_class = Contact

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.get_by_email = self.make_index(lambda c: c.all_emails)

    def _build_adapter(self, settings: Settings) -> EntityAdapter:
        return build_contact_adapter(settings)
