"""HubSpot transport collaborators.

- HubspotClient: Live CRM v3 client (download + upload)
- DryRunUploader: Logs writes instead of performing them
"""

from __future__ import annotations

from src.hubsync.io.dry_run import DryRunUploader
from src.hubsync.io.hubspot import HubspotClient

__all__ = [
    "DryRunUploader",
    "HubspotClient",
]
