"""Cross-kind entity registry and synchronization run phases.

A Database owns one manager per entity kind and resolves ``(kind, id)``
lookups across them. It is created per run and passed explicitly into every
manager, so independent runs never share state.

Run order:

1. download_all() -- every kind, one after another;
2. link_all() -- only once every kind is downloaded;
3. business logic mutates and creates entities;
4. sync_up_all() -- properties of every kind, then associations of every
   kind, so associations see the ids assigned to newly created entities.
"""

from __future__ import annotations

import structlog

from src.hubsync.config import Settings, get_settings
from src.hubsync.entities.entity import Entity
from src.hubsync.entities.errors import ReferentialIntegrityError
from src.hubsync.entities.interfaces import EntityDownloader, EntityKind, EntityUploader
from src.hubsync.entities.manager import EntityManager
from src.hubsync.model.company import CompanyManager
from src.hubsync.model.contact import ContactManager
from src.hubsync.model.deal import DealManager
from src.hubsync.observability.progress import LogProgress, Progress

logger = structlog.get_logger(__name__)


class Database:
    """Registry of all entity managers for one synchronization run.

    Args:
        downloader: Collaborator fetching raw records.
        uploader: Collaborator performing bulk writes.
        settings: Application settings. Uses get_settings() if None.
    """

    def __init__(
        self,
        downloader: EntityDownloader,
        uploader: EntityUploader,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.contact_manager = ContactManager(downloader, uploader, self, settings)
        self.company_manager = CompanyManager(downloader, uploader, self, settings)
        self.deal_manager = DealManager(downloader, uploader, self, settings)
        self._downloaded: set[EntityKind] = set()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Database:
        """Database backed by the live HubSpot client.

        Writes go to a DryRunUploader instead when HUBSPOT_DRY_RUN is set.
        """
        from src.hubsync.io import DryRunUploader, HubspotClient

        settings = settings or get_settings()
        client = HubspotClient.from_settings(settings)
        uploader: EntityUploader = DryRunUploader() if settings.HUBSPOT_DRY_RUN else client
        return cls(client, uploader, settings)

    @property
    def managers(self) -> dict[EntityKind, EntityManager]:
        return {
            EntityKind.CONTACT: self.contact_manager,
            EntityKind.COMPANY: self.company_manager,
            EntityKind.DEAL: self.deal_manager,
        }

    def get_entity(self, kind: EntityKind, entity_id: str) -> Entity | None:
        return self.managers[kind].get(entity_id)

    async def download_all(self, progress: Progress | None = None) -> None:
        """Download every kind. Linking must wait until this completes."""
        for kind, manager in self.managers.items():
            await manager.download_all_entities(progress or LogProgress(kind.value))
            self._downloaded.add(kind)

    def link_all(self) -> None:
        """Link buffered associations of every kind.

        Raises:
            ReferentialIntegrityError: If called before every kind has been
                downloaded, or on a dangling association reference.
        """
        missing = [kind.value for kind in self.managers if kind not in self._downloaded]
        if missing:
            raise ReferentialIntegrityError(
                ",".join(missing), None, "kinds must be downloaded before linking"
            )
        for manager in self.managers.values():
            manager.link_associations()

    async def sync_up_all(self) -> None:
        """Push properties of every kind, then associations of every kind."""
        for manager in self.managers.values():
            await manager.sync_up_all_entities()
        for manager in self.managers.values():
            await manager.sync_up_all_associations()

    def summary(self) -> dict[str, dict[str, int]]:
        """Per-kind sync counters for reporting."""
        summary = {kind.value: manager.summary() for kind, manager in self.managers.items()}
        logger.info("database.sync_summary", **summary)
        return summary
