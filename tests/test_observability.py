"""Tests for sync metrics, progress reporting and logging setup."""

from __future__ import annotations

import pytest
import structlog
from prometheus_client import REGISTRY

from src.hubsync.config import Environment, Settings
from src.hubsync.entities.interfaces import EntityKind
from src.hubsync.model.contact import ContactData
from src.hubsync.observability import configure_structlog
from src.hubsync.observability.metrics import record_synced
from src.hubsync.observability.progress import LogProgress, NullProgress
from tests.conftest import deal_props


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


# ── Metrics ─────────────────────────────────────────────────────────────────


class TestMetrics:
    """Prometheus counters mirror the run counters."""

    def test_record_synced_increments(self):
        """record_synced adds the count under kind and operation labels."""
        before = _sample("hubsync_entities_synced_total", kind="widget", operation="created")
        record_synced("widget", "created", 3)
        record_synced("widget", "created", 0)
        after = _sample("hubsync_entities_synced_total", kind="widget", operation="created")
        assert after - before == 3

    async def test_download_and_reject_counted(self, db, hubspot):
        """Downloads count decoded and rejected records separately."""
        hubspot.add(EntityKind.DEAL, "d1", deal_props("AL-1"))
        hubspot.add(EntityKind.DEAL, "d2", deal_props("AL-2", pipeline="other"))
        downloaded = _sample("hubsync_entities_downloaded_total", kind="deal")
        rejected = _sample("hubsync_entities_rejected_total", kind="deal")

        await db.deal_manager.download_all_entities(NullProgress())

        assert _sample("hubsync_entities_downloaded_total", kind="deal") - downloaded == 1
        assert _sample("hubsync_entities_rejected_total", kind="deal") - rejected == 1

    async def test_creates_counted(self, db):
        """Created entities are counted once per sync."""
        before = _sample("hubsync_entities_synced_total", kind="contact", operation="created")
        db.contact_manager.create(ContactData(email="new@x.com"))
        await db.contact_manager.sync_up_all_entities()
        after = _sample("hubsync_entities_synced_total", kind="contact", operation="created")
        assert after - before == 1


# ── Progress ────────────────────────────────────────────────────────────────


class TestProgress:

    def test_log_progress_counts_ticks(self):
        """LogProgress accumulates ticks and logs them."""
        progress = LogProgress("contact")
        with structlog.testing.capture_logs() as logs:
            progress.tick()
            progress.tick(4)

        assert progress.done == 5
        assert [entry["event"] for entry in logs] == [
            "progress.tick",
            "progress.tick",
        ]
        assert logs[-1]["done"] == 5

    def test_null_progress_accepts_updates(self):
        """NullProgress ignores everything."""
        progress = NullProgress()
        progress.tick(3)


# ── Logging ─────────────────────────────────────────────────────────────────


class TestConfigureStructlog:

    @pytest.fixture(autouse=True)
    def _reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_production_renders_json(self):
        """Production uses the JSON renderer."""
        configure_structlog(Settings(_env_file=None, ENVIRONMENT=Environment.production))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_renders_console(self):
        """Development uses the console renderer."""
        configure_structlog(Settings(_env_file=None, ENVIRONMENT=Environment.development))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
