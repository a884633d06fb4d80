"""Entity manager -- lifecycle and sync orchestration for one entity kind.

A manager owns every entity of its kind and drives:

- download: request properties/associations, reject, decode, index;
- linking: resolve buffered ``kind:id`` references across kinds through the
  EntityDatabase once every kind has been downloaded;
- local creation and removal;
- property sync: diff against baseline, bulk create + resolve new ids by
  identifier fields, bulk update, commit baselines, rebuild indexes;
- association sync: push pending adds/removes for bidirectional kinds.

Runs are single-writer: nothing else mutates the collection while a bulk
call is awaited.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, ClassVar, Generic, Protocol, TypeVar

import structlog

from src.hubsync.config import Settings, get_settings
from src.hubsync.entities.adapter import EntityAdapter
from src.hubsync.entities.entity import AssociationChange, AssociationOp, Entity
from src.hubsync.entities.errors import IdentityResolutionError, ReferentialIntegrityError
from src.hubsync.entities.index import Index
from src.hubsync.entities.interfaces import (
    AssociationInput,
    CreatedEntity,
    EntityCreate,
    EntityDownloader,
    EntityKind,
    EntityUpdate,
    EntityUploader,
    parse_association_ref,
)
from src.hubsync.observability.metrics import record_downloaded, record_rejected, record_synced
from src.hubsync.observability.progress import Progress

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=Entity)


class EntityDatabase(Protocol):
    """Cross-kind entity lookup used while linking associations."""

    def get_entity(self, kind: EntityKind, entity_id: str) -> Entity | None: ...


class EntityManager(ABC, Generic[E]):
    """Owns all entities of one kind and synchronizes them with HubSpot.

    Subclasses set ``kind`` and ``entity_class`` and build their adapter
    from settings. Extra lookups are registered with make_index().

    Args:
        downloader: Collaborator fetching raw records.
        uploader: Collaborator performing bulk writes.
        db: Registry resolving entities of other kinds during linking.
        settings: Application settings. Uses get_settings() if None.
    """

    kind: ClassVar[EntityKind]
    entity_class: ClassVar[type[Entity]]

    def __init__(
        self,
        downloader: EntityDownloader,
        uploader: EntityUploader,
        db: EntityDatabase,
        settings: Settings | None = None,
    ) -> None:
        self._downloader = downloader
        self._uploader = uploader
        self._db = db
        self._settings = settings or get_settings()
        self._logger = logger.bind(kind=self.kind.value)

        self.entity_adapter = self._build_adapter(self._settings)

        self.created_count = 0
        self.updated_count = 0
        self.associated_count = 0
        self.disassociated_count = 0

        self._entities: list[E] = []
        self._indexes: list[Index[E]] = []
        self._prelinked_associations: dict[str, list[str]] = {}

        self.get = self.make_index(lambda e: [e.id] if e.id is not None else [])

    @abstractmethod
    def _build_adapter(self, settings: Settings) -> EntityAdapter:
        """Build this kind's adapter from configured property names."""
        ...

    def __len__(self) -> int:
        return len(self._entities)

    def get_all(self) -> list[E]:
        return list(self._entities)

    # ── Download & Link ─────────────────────────────────────────────────────

    async def download_all_entities(self, progress: Progress) -> None:
        """Download, decode and index every record of this kind.

        Association references are buffered until link_associations(),
        since the related entities may belong to kinds not downloaded yet.
        """
        adapter = self.entity_adapter
        raw_entities = await self._downloader.download_entities(
            progress,
            self.kind,
            adapter.api_properties,
            adapter.down_associations,
        )

        rejected = 0
        for raw in raw_entities:
            if adapter.rejects(raw.properties):
                rejected += 1
                continue

            data = adapter.decode_data(raw.properties)
            computed = adapter.decode_computed(raw.properties)

            if raw.associations:
                refs = self._prelinked_associations.setdefault(raw.id, [])
                refs.extend(ref for ref in raw.associations if ref not in refs)

            entity = self.entity_class(
                raw.id,
                self.kind,
                data,
                computed,
                adapter,
                baseline=adapter.encode_data(data),
            )
            self._entities.append(entity)  # type: ignore[arg-type]

        self._rebuild_indexes()

        downloaded = len(raw_entities) - rejected
        record_downloaded(self.kind.value, downloaded)
        record_rejected(self.kind.value, rejected)
        self._logger.info(
            "entity_manager.download_complete",
            downloaded=downloaded,
            rejected=rejected,
        )

    def link_associations(self) -> None:
        """Attach buffered association references to their entities.

        Must run after every kind has been downloaded. Each reference is
        attached from the side that downloaded it; the attach registers the
        reciprocal side as well.

        Raises:
            ReferentialIntegrityError: If either end of a reference cannot
                be found.
        """
        declared = {kind.value: kind for kind in self.entity_adapter.associations}
        linked = 0
        for me_id, refs in self._prelinked_associations.items():
            me = self.get(me_id)
            if me is None:
                raise ReferentialIntegrityError(self.kind.value, me_id)

            for ref in refs:
                try:
                    kind_name, you_id = parse_association_ref(ref)
                except ValueError as exc:
                    raise ReferentialIntegrityError(
                        self.kind.value, me_id, f"bad association reference {ref!r}"
                    ) from exc

                # Kinds this entity does not relate to, known or not, are skipped
                to_kind = declared.get(kind_name)
                if to_kind is None:
                    self._logger.debug(
                        "entity_manager.association_kind_ignored",
                        entity_id=me_id,
                        reference=ref,
                    )
                    continue

                you = self._db.get_entity(to_kind, you_id)
                if you is None:
                    raise ReferentialIntegrityError(
                        to_kind.value, you_id, f"referenced by {self.kind.value} {me_id}"
                    )

                me.add_association(you, first_side=True, initial=True)
                linked += 1

        self._prelinked_associations.clear()
        self._logger.info("entity_manager.link_complete", linked=linked)

    # ── Local Mutation ──────────────────────────────────────────────────────

    def create(self, data: Any) -> E:
        """Create a local entity with no remote id; it is uploaded on the next sync."""
        entity = self.entity_class(
            None,
            self.kind,
            data,
            self.entity_adapter.default_computed(),
            self.entity_adapter,
        )
        self._entities.append(entity)  # type: ignore[arg-type]
        for index in self._indexes:
            index.add_indexes_for([entity])  # type: ignore[list-item]
        return entity  # type: ignore[return-value]

    def remove_locally(self, entities: Iterable[E]) -> None:
        """Forget entities locally without touching HubSpot."""
        entities = list(entities)
        for index in self._indexes:
            index.remove_indexes_for(entities)
        for entity in entities:
            self._entities.remove(entity)

    # ── Property Sync ───────────────────────────────────────────────────────

    async def sync_up_all_entities(self) -> None:
        """Push property changes: create new entities, update changed ones."""
        await self._sync_up_properties()
        self._rebuild_indexes()

    async def _sync_up_properties(self) -> None:
        to_sync = [
            (entity, changes)
            for entity in self._entities
            if (changes := entity.get_property_changes())
        ]
        to_create = [(e, changes) for e, changes in to_sync if e.id is None]
        to_update = [(e, changes) for e, changes in to_sync if e.id is not None]

        if to_create:
            results = await self._uploader.create_entities(
                self.kind,
                [EntityCreate(properties=self._to_properties(changes)) for _, changes in to_create],
            )
            for entity, changes in to_create:
                entity.apply_property_changes(changes)
            self._resolve_created_ids([e for e, _ in to_create], results)

        if to_update:
            await self._uploader.update_entities(
                self.kind,
                [
                    EntityUpdate(id=e.guaranteed_id(), properties=self._to_properties(changes))
                    for e, changes in to_update
                ],
            )
            for entity, changes in to_update:
                entity.apply_property_changes(changes)

        self.created_count += len(to_create)
        self.updated_count += len(to_update)
        record_synced(self.kind.value, "created", len(to_create))
        record_synced(self.kind.value, "updated", len(to_update))
        self._logger.info(
            "entity_manager.properties_synced",
            created=len(to_create),
            updated=len(to_update),
        )

    def _resolve_created_ids(self, created: list[E], results: list[CreatedEntity]) -> None:
        """Assign each created entity the id of the one result matching its identifiers.

        Raises:
            IdentityResolutionError: If a local entity matches zero or
                several results, or two local entities match the same one.
        """
        identifiers = self.entity_adapter.identifiers
        remotes = [r.model_dump() for r in results]
        claimed: set[str] = set()

        for entity in created:
            local = {
                spec.property: spec.up(getattr(entity.data, name))
                for name, spec in identifiers.items()
            }
            matches = [
                result
                for result in results
                if all((result.properties.get(prop) or "") == value for prop, value in local.items())
            ]
            if len(matches) != 1:
                raise IdentityResolutionError(
                    self.kind.value, self._describe(entity), remotes, len(matches)
                )

            found = matches[0]
            if found.id in claimed:
                raise IdentityResolutionError(
                    self.kind.value,
                    self._describe(entity),
                    remotes,
                    1,
                    reason=f"Created {self.kind.value} {found.id} already matched another local entity",
                )
            claimed.add(found.id)
            entity.id = found.id

    # ── Association Sync ────────────────────────────────────────────────────

    async def sync_up_all_associations(self) -> None:
        """Push pending association changes for bidirectional kinds.

        Pending operations towards kinds that are not bidirectional are
        dropped with a warning. Every pending operation is committed
        afterwards.
        """
        with_changes = [e for e in self._entities if e.has_association_changes()]
        to_sync: list[tuple[E, AssociationChange]] = [
            (entity, change)
            for entity in with_changes
            for change in entity.get_association_changes()
        ]

        up_kinds = self.entity_adapter.up_associations
        dropped = [(e, c) for e, c in to_sync if c.other.kind not in up_kinds]
        if dropped:
            self._logger.warning(
                "entity_manager.associations_dropped",
                count=len(dropped),
                changes=[
                    f"{c.op.value} {c.other.kind.value}:{c.other.id} from {e.id}"
                    for e, c in dropped
                ],
            )

        for other_kind in up_kinds:
            in_kind = [(e, c) for e, c in to_sync if c.other.kind == other_kind]
            to_add = [self._association_input(e, c) for e, c in in_kind if c.op == AssociationOp.ADD]
            to_del = [self._association_input(e, c) for e, c in in_kind if c.op == AssociationOp.REMOVE]

            if to_add:
                await self._uploader.create_associations(self.kind, other_kind, to_add)
            if to_del:
                await self._uploader.delete_associations(self.kind, other_kind, to_del)

            self.associated_count += len(to_add)
            self.disassociated_count += len(to_del)
            record_synced(self.kind.value, "associated", len(to_add))
            record_synced(self.kind.value, "disassociated", len(to_del))

        for entity in with_changes:
            entity.apply_association_changes()

        self._logger.info(
            "entity_manager.associations_synced",
            pending=len(to_sync),
            dropped=len(dropped),
        )

    # ── Indexes ─────────────────────────────────────────────────────────────

    def make_index(self, keys_for: Callable[[E], Iterable[str]]) -> Callable[[str], E | None]:
        """Register an index over this manager's entities and return its lookup."""
        index: Index[E] = Index(keys_for)
        index.add_indexes_for(self._entities)
        self._indexes.append(index)
        return index.get

    def _rebuild_indexes(self) -> None:
        for index in self._indexes:
            index.rebuild(self._entities)

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _to_properties(self, changes: dict[str, str]) -> dict[str, str]:
        """Map field-name keyed changes to HubSpot property names."""
        data_specs = self.entity_adapter.data
        return {
            data_specs[name].property: value  # type: ignore[misc]
            for name, value in changes.items()
            if data_specs[name].property
        }

    def _association_input(self, entity: E, change: AssociationChange) -> AssociationInput:
        return AssociationInput(
            from_id=entity.guaranteed_id(),
            to_id=change.other.guaranteed_id(),
            to_type=change.other.kind,
        )

    def _describe(self, entity: E) -> dict[str, Any]:
        return {"id": entity.id, "data": self.entity_adapter.encode_data(entity.data)}

    def summary(self) -> dict[str, int]:
        return {
            "created": self.created_count,
            "updated": self.updated_count,
            "associated": self.associated_count,
            "disassociated": self.disassociated_count,
        }
