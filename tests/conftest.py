"""Shared fixtures for entity sync tests.

Provides:
- Settings with deterministic pipeline/stage ids and custom property names
- FakeHubspot: in-memory download/upload collaborator recording every call
- Database wired to the fake
- Raw property helpers for contacts, companies and deals
"""

from __future__ import annotations

import pytest

from src.hubsync.config import Settings
from src.hubsync.entities.database import Database
from src.hubsync.entities.interfaces import (
    AssociationInput,
    CreatedEntity,
    EntityCreate,
    EntityDownloader,
    EntityKind,
    EntityUpdate,
    EntityUploader,
    RawEntity,
)
from src.hubsync.model.deal import DealData, DealStage, Pipeline
from src.hubsync.observability.progress import Progress


class FakeHubspot(EntityDownloader, EntityUploader):
    """In-memory HubSpot double.

    Bulk creates echo the submitted properties back with sequential ids.
    ``reverse_created`` returns them in reverse order; ``created_results``
    replaces them entirely.
    """

    def __init__(self) -> None:
        self.records: dict[EntityKind, list[RawEntity]] = {kind: [] for kind in EntityKind}
        self.download_calls: list[tuple[EntityKind, list[str], list[EntityKind]]] = []
        self.created: list[tuple[EntityKind, list[EntityCreate]]] = []
        self.updated: list[tuple[EntityKind, list[EntityUpdate]]] = []
        self.associated: list[tuple[EntityKind, EntityKind, list[AssociationInput]]] = []
        self.disassociated: list[tuple[EntityKind, EntityKind, list[AssociationInput]]] = []
        self.reverse_created = False
        self.created_results: list[CreatedEntity] | None = None
        self._next_id = 1000

    def add(
        self,
        kind: EntityKind,
        entity_id: str,
        properties: dict[str, str | None],
        associations: list[str] | None = None,
    ) -> None:
        self.records[kind].append(
            RawEntity(id=entity_id, properties=properties, associations=associations or [])
        )

    @property
    def write_count(self) -> int:
        return len(self.created) + len(self.updated) + len(self.associated) + len(self.disassociated)

    async def download_entities(
        self,
        progress: Progress,
        kind: EntityKind,
        properties: list[str],
        associations: list[EntityKind],
    ) -> list[RawEntity]:
        self.download_calls.append((kind, properties, associations))
        progress.tick(len(self.records[kind]))
        return [raw.model_copy(deep=True) for raw in self.records[kind]]

    async def create_entities(
        self, kind: EntityKind, entities: list[EntityCreate]
    ) -> list[CreatedEntity]:
        self.created.append((kind, entities))
        if self.created_results is not None:
            return self.created_results
        results = []
        for entity in entities:
            self._next_id += 1
            results.append(CreatedEntity(id=str(self._next_id), properties=dict(entity.properties)))
        if self.reverse_created:
            results.reverse()
        return results

    async def update_entities(self, kind: EntityKind, entities: list[EntityUpdate]) -> None:
        self.updated.append((kind, entities))

    async def create_associations(
        self, from_kind: EntityKind, to_kind: EntityKind, inputs: list[AssociationInput]
    ) -> None:
        self.associated.append((from_kind, to_kind, inputs))

    async def delete_associations(
        self, from_kind: EntityKind, to_kind: EntityKind, inputs: list[AssociationInput]
    ) -> None:
        self.disassociated.append((from_kind, to_kind, inputs))


# ── Property Helpers ────────────────────────────────────────────────────────


def contact_props(email: str, **overrides: str | None) -> dict[str, str | None]:
    props: dict[str, str | None] = {
        "email": email,
        "firstname": "Ada",
        "lastname": "Lovelace",
        "contact_type": "Customer",
        "country": "GB",
        "related_products": "confluence;jira",
        "license_tier": "10",
    }
    props.update(overrides)
    return props


def company_props(name: str, **overrides: str | None) -> dict[str, str | None]:
    props: dict[str, str | None] = {"name": name, "type": None}
    props.update(overrides)
    return props


def deal_props(addon_license_id: str, **overrides: str | None) -> dict[str, str | None]:
    props: dict[str, str | None] = {
        "addonlicenseid": addon_license_id,
        "transactionid": None,
        "closedate": "2024-03-01T00:00:00Z",
        "country": "GB",
        "dealname": f"Deal {addon_license_id}",
        "license_tier": "25",
        "pipeline": "mpac",
        "dealstage": "eval",
        "amount": None,
    }
    props.update(overrides)
    return props


def make_deal_data(addon_license_id: str | None, **overrides) -> DealData:
    values = {
        "related_products": None,
        "app": None,
        "addon_license_id": addon_license_id,
        "transaction_id": None,
        "close_date": "2024-03-01",
        "country": "GB",
        "deal_name": f"Deal {addon_license_id}",
        "origin": None,
        "deployment": "Cloud",
        "license_tier": 25,
        "pipeline": Pipeline.MPAC,
        "deal_stage": DealStage.EVAL,
        "amount": None,
    }
    values.update(overrides)
    return DealData(**values)


# ── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic pipeline ids and property names."""
    return Settings(
        _env_file=None,
        HUBSPOT_PIPELINE_MPAC="mpac",
        HUBSPOT_DEALSTAGE_EVAL="eval",
        HUBSPOT_DEALSTAGE_CLOSED_WON="won",
        HUBSPOT_DEALSTAGE_CLOSED_LOST="lost",
        HUBSPOT_DEAL_DEPLOYMENT_ATTR="deployment",
        HUBSPOT_DEAL_APP_ATTR="",
    )


@pytest.fixture
def hubspot() -> FakeHubspot:
    return FakeHubspot()


@pytest.fixture
def db(hubspot, settings) -> Database:
    return Database(hubspot, hubspot, settings)
