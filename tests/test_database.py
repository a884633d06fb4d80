"""End-to-end tests for the Database run phases against the in-memory fake."""

from __future__ import annotations

from src.hubsync.config import Settings
from src.hubsync.entities.database import Database
from src.hubsync.entities.interfaces import AssociationInput, EntityKind
from src.hubsync.io import DryRunUploader, HubspotClient
from src.hubsync.model.contact import ContactData
from src.hubsync.observability.progress import NullProgress
from tests.conftest import company_props, contact_props, deal_props, make_deal_data


class TestDatabaseRun:
    """download_all -> link_all -> mutate -> sync_up_all."""

    async def test_full_run(self, db, hubspot):
        """A new deal linked to a new contact gets ids before its associations are pushed."""
        hubspot.add(EntityKind.CONTACT, "c1", contact_props("a@x.com"), ["company:co1"])
        hubspot.add(EntityKind.COMPANY, "co1", company_props("Acme"), ["contact:c1"])
        hubspot.add(EntityKind.DEAL, "d1", deal_props("AL-1"), ["contact:c1", "company:co1"])
        await db.download_all(NullProgress())
        db.link_all()

        contact = db.contact_manager.create(ContactData(email="new@x.com"))
        deal = db.deal_manager.create(make_deal_data("AL-2"))
        deal.add_association(contact)
        deal.add_association(db.company_manager.get("co1"))

        await db.sync_up_all()

        assert contact.id is not None
        assert deal.id is not None
        pushed = {(f, t): inputs for f, t, inputs in hubspot.associated}
        assert pushed[(EntityKind.DEAL, EntityKind.CONTACT)] == [
            AssociationInput(from_id=deal.id, to_id=contact.id, to_type=EntityKind.CONTACT)
        ]
        assert pushed[(EntityKind.DEAL, EntityKind.COMPANY)] == [
            AssociationInput(from_id=deal.id, to_id="co1", to_type=EntityKind.COMPANY)
        ]
        assert db.get_entity(EntityKind.DEAL, deal.id) is deal
        assert db.get_entity(EntityKind.CONTACT, contact.id) is contact

    async def test_second_sync_writes_nothing(self, db, hubspot):
        """A clean run leaves nothing pending."""
        hubspot.add(EntityKind.DEAL, "d1", deal_props("AL-1"))
        await db.download_all(NullProgress())
        db.link_all()
        db.deal_manager.get("d1").data.deal_name = "Renamed"

        await db.sync_up_all()
        writes = hubspot.write_count
        await db.sync_up_all()

        assert writes == 1
        assert hubspot.write_count == 1

    async def test_summary(self, db, hubspot):
        """summary() reports per-kind counters."""
        db.contact_manager.create(ContactData(email="new@x.com"))
        await db.download_all(NullProgress())
        db.link_all()
        await db.sync_up_all()

        summary = db.summary()
        assert summary["contact"]["created"] == 1
        assert summary["deal"] == {"created": 0, "updated": 0, "associated": 0, "disassociated": 0}

    async def test_runs_do_not_share_state(self, hubspot, settings):
        """Two databases built over the same transport are independent."""
        hubspot.add(EntityKind.CONTACT, "c1", contact_props("a@x.com"))
        first = Database(hubspot, hubspot, settings)
        second = Database(hubspot, hubspot, settings)
        await first.download_all(NullProgress())

        assert first.contact_manager.get("c1") is not None
        assert second.contact_manager.get("c1") is None

    async def test_default_progress_is_logged(self, db, hubspot):
        """Without an explicit progress handle, downloads still complete."""
        hubspot.add(EntityKind.COMPANY, "co1", company_props("Acme"))
        await db.download_all()
        assert len(db.company_manager) == 1


class TestFromSettings:
    """Database.from_settings wires the live client or the dry-run uploader."""

    def test_dry_run_uses_dry_run_uploader(self):
        """HUBSPOT_DRY_RUN routes writes to the dry-run uploader."""
        settings = Settings(_env_file=None, HUBSPOT_ACCESS_TOKEN="t", HUBSPOT_DRY_RUN=True)
        db = Database.from_settings(settings)
        assert isinstance(db.deal_manager._downloader, HubspotClient)
        assert isinstance(db.deal_manager._uploader, DryRunUploader)

    def test_live_run_uses_client_for_both(self):
        """Without dry run, the client downloads and uploads."""
        settings = Settings(_env_file=None, HUBSPOT_ACCESS_TOKEN="t")
        db = Database.from_settings(settings)
        assert isinstance(db.contact_manager._uploader, HubspotClient)
        assert db.contact_manager._uploader is db.contact_manager._downloader
