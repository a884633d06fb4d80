"""Uploader that logs every write instead of performing it.

Created records get generated ids and echo back their submitted properties,
so id resolution and association sync run exactly as they would live.
"""

from __future__ import annotations

import uuid

import structlog

from src.hubsync.entities.interfaces import (
    AssociationInput,
    CreatedEntity,
    EntityCreate,
    EntityKind,
    EntityUpdate,
    EntityUploader,
)

logger = structlog.get_logger(__name__)


class DryRunUploader(EntityUploader):
    """EntityUploader that performs no remote writes."""

    async def create_entities(
        self, kind: EntityKind, entities: list[EntityCreate]
    ) -> list[CreatedEntity]:
        created = [
            CreatedEntity(id=f"dry-run-{uuid.uuid4()}", properties=dict(e.properties))
            for e in entities
        ]
        for entity in created:
            logger.info(
                "dry_run.create",
                kind=kind.value,
                entity_id=entity.id,
                properties=entity.properties,
            )
        return created

    async def update_entities(self, kind: EntityKind, entities: list[EntityUpdate]) -> None:
        for entity in entities:
            logger.info(
                "dry_run.update",
                kind=kind.value,
                entity_id=entity.id,
                properties=entity.properties,
            )

    async def create_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        for i in inputs:
            logger.info(
                "dry_run.associate",
                from_kind=from_kind.value,
                from_id=i.from_id,
                to_kind=to_kind.value,
                to_id=i.to_id,
            )

    async def delete_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        for i in inputs:
            logger.info(
                "dry_run.disassociate",
                from_kind=from_kind.value,
                from_id=i.from_id,
                to_kind=to_kind.value,
                to_id=i.to_id,
            )
