"""HubSpot deals in the marketplace pipeline.

Deals outside the configured pipeline are rejected at download time and
never become entities. Pipeline and stage are decoded through the
configured id mappings; an unknown value is a configuration error.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Literal

from src.hubsync.config import Settings
from src.hubsync.entities.adapter import ComputedSpec, EntityAdapter, FieldSpec
from src.hubsync.entities.entity import Entity
from src.hubsync.entities.interfaces import AssociationDirection, EntityKind, HubspotProperties
from src.hubsync.entities.manager import EntityManager
from src.hubsync.model.codecs import (
    enum_from_value,
    format_int,
    format_number,
    is_non_blank,
    is_non_zero_number,
    optional_str,
    parse_float,
    parse_int,
    str_or_empty,
)

if TYPE_CHECKING:
    from src.hubsync.model.company import Company
    from src.hubsync.model.contact import Contact


class Pipeline(IntEnum):
    MPAC = 0


class DealStage(IntEnum):
    EVAL = 0
    CLOSED_WON = 1
    CLOSED_LOST = 2


@dataclass
class DealData:
    related_products: str | None
    app: str | None
    addon_license_id: str | None
    transaction_id: str | None
    close_date: str
    country: str
    deal_name: str
    origin: str | None
    deployment: Literal["Server", "Cloud", "Data Center"] | None
    license_tier: int | None
    pipeline: Pipeline
    deal_stage: DealStage
    amount: float | None


@dataclass(frozen=True)
class DealComputed:
    has_activity: bool = False


class Deal(Entity):

    @property
    def contacts(self) -> set[Contact]:
        return self.associations_of(EntityKind.CONTACT)  # type: ignore[return-value]

    @property
    def companies(self) -> set[Company]:
        return self.associations_of(EntityKind.COMPANY)  # type: ignore[return-value]

    def is_eval(self) -> bool:
        return self.data.deal_stage == DealStage.EVAL

    def is_closed(self) -> bool:
        return self.data.deal_stage in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)


# Properties that show a human has worked on the deal
_ACTIVITY_PROPERTIES = (
    "hs_user_ids_of_all_owners",
    "engagements_last_meeting_booked",
    "hs_latest_meeting_activity",
    "notes_last_contacted",
    "notes_last_updated",
    "notes_next_activity_date",
    "hs_sales_email_last_replied",
)
_ACTIVITY_COUNT_PROPERTIES = (
    "num_contacted_notes",
    "num_notes",
)


def _has_activity(props: HubspotProperties) -> bool:
    return any(is_non_blank(props.get(name)) for name in _ACTIVITY_PROPERTIES) or any(
        is_non_zero_number(props.get(name)) for name in _ACTIVITY_COUNT_PROPERTIES
    )


def build_deal_adapter(settings: Settings) -> EntityAdapter:
    """Deal adapter wired to the configured pipeline, stages and custom properties."""
    pipelines = {Pipeline.MPAC: settings.HUBSPOT_PIPELINE_MPAC}
    dealstages = {
        DealStage.EVAL: settings.HUBSPOT_DEALSTAGE_EVAL,
        DealStage.CLOSED_WON: settings.HUBSPOT_DEALSTAGE_CLOSED_WON,
        DealStage.CLOSED_LOST: settings.HUBSPOT_DEALSTAGE_CLOSED_LOST,
    }

    return EntityAdapter(
        data_type=DealData,
        computed_type=DealComputed,
        associations={
            EntityKind.CONTACT: AssociationDirection.DOWN_UP,
            EntityKind.COMPANY: AssociationDirection.DOWN_UP,
        },
        should_reject=lambda props: props.get("pipeline") != settings.HUBSPOT_PIPELINE_MPAC,
        data={
            "related_products": FieldSpec(
                property="related_products", down=optional_str, up=str_or_empty
            ),
            "app": FieldSpec(
                property=settings.HUBSPOT_DEAL_APP_ATTR or None,
                down=optional_str,
                up=str_or_empty,
            ),
            "addon_license_id": FieldSpec(
                property=settings.HUBSPOT_DEAL_ADDON_LICENSE_ID_ATTR,
                identifier=True,
                down=optional_str,
                up=str_or_empty,
            ),
            "transaction_id": FieldSpec(
                property=settings.HUBSPOT_DEAL_TRANSACTION_ID_ATTR,
                identifier=True,
                down=optional_str,
                up=str_or_empty,
            ),
            "close_date": FieldSpec(
                property="closedate",
                down=lambda value: (value or "")[:10],
                up=str,
            ),
            "country": FieldSpec(property="country", down=str_or_empty, up=str),
            "deal_name": FieldSpec(property="dealname", down=str_or_empty, up=str),
            "origin": FieldSpec(property="origin", down=optional_str, up=str_or_empty),
            "deployment": FieldSpec(
                property=settings.HUBSPOT_DEAL_DEPLOYMENT_ATTR or None,
                down=optional_str,
                up=str_or_empty,
            ),
            "license_tier": FieldSpec(property="license_tier", down=parse_int, up=format_int),
            "pipeline": FieldSpec(
                property="pipeline",
                down=lambda value: enum_from_value(pipelines, value),
                up=lambda pipeline: pipelines[pipeline],
            ),
            "deal_stage": FieldSpec(
                property="dealstage",
                down=lambda value: enum_from_value(dealstages, value),
                up=lambda stage: dealstages[stage],
            ),
            "amount": FieldSpec(property="amount", down=parse_float, up=format_number),
        },
        computed={
            "has_activity": ComputedSpec(
                default=False,
                down=_has_activity,
                properties=_ACTIVITY_PROPERTIES + _ACTIVITY_COUNT_PROPERTIES,
            ),
        },
    )


class DealManager(EntityManager[Deal]):
    """Manages marketplace deals, indexed by addon license id and transaction id."""

    kind = EntityKind.DEAL
    entity_class = Deal

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.get_by_addon_license_id = self.make_index(
            lambda d: [d.data.addon_license_id] if d.data.addon_license_id else []
        )
        self.get_by_transaction_id = self.make_index(
            lambda d: [d.data.transaction_id] if d.data.transaction_id else []
        )

    def _build_adapter(self, settings: Settings) -> EntityAdapter:
        return build_deal_adapter(settings)

    def get_deals_for_addon_license_ids(self, addon_license_ids: Iterable[str]) -> set[Deal]:
        found = (self.get_by_addon_license_id(id) for id in addon_license_ids)
        return {deal for deal in found if deal is not None}

    def get_deals_for_transaction_ids(self, transaction_ids: Iterable[str]) -> set[Deal]:
        found = (self.get_by_transaction_id(id) for id in transaction_ids)
        return {deal for deal in found if deal is not None}
