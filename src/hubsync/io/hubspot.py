"""Async HTTP client for the HubSpot CRM v3 REST API.

Implements both transport collaborators of the entity engine:

- paginated object listing with requested properties and associations,
  converted into RawEntity records with ``kind:id`` association references;
- batch create/update of objects and batch create/archive of associations,
  chunked to the HubSpot batch limit.

Every request is retried (tenacity, 3 attempts, exponential backoff 1-10s)
on rate limiting, server errors, and network failures. Other HTTP errors
propagate immediately.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from src.hubsync.config import Settings, get_settings
from src.hubsync.entities.interfaces import (
    AssociationInput,
    CreatedEntity,
    EntityCreate,
    EntityDownloader,
    EntityKind,
    EntityUpdate,
    EntityUploader,
    RawEntity,
    make_association_ref,
)
from src.hubsync.observability.progress import Progress

logger = structlog.get_logger(__name__)

T = TypeVar("T")

OBJECT_TYPES: dict[EntityKind, str] = {
    EntityKind.CONTACT: "contacts",
    EntityKind.COMPANY: "companies",
    EntityKind.DEAL: "deals",
}
_KINDS_BY_OBJECT_TYPE = {object_type: kind for kind, object_type in OBJECT_TYPES.items()}


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


_hubspot_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


def _batches(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class HubspotClient(EntityDownloader, EntityUploader):
    """Async client for HubSpot CRM objects and associations.

    Args:
        access_token: Private app access token.
        base_url: API root (default: https://api.hubapi.com).
        batch_size: Maximum records per batch request.
        timeout: Request timeout in seconds.
    """

    PAGE_LIMIT = 100

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.hubapi.com",
        batch_size: int = 100,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._batch_size = batch_size
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> HubspotClient:
        settings = settings or get_settings()
        return cls(
            access_token=settings.HUBSPOT_ACCESS_TOKEN,
            base_url=settings.HUBSPOT_BASE_URL,
            batch_size=settings.HUBSPOT_BATCH_SIZE,
            timeout=settings.HUBSPOT_TIMEOUT,
        )

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client with auth headers and timeout."""
        return httpx.AsyncClient(headers=self._headers, timeout=self._timeout)

    # ── Download ────────────────────────────────────────────────────────────

    async def download_entities(
        self,
        progress: Progress,
        kind: EntityKind,
        properties: list[str],
        associations: list[EntityKind],
    ) -> list[RawEntity]:
        """List every object of ``kind``, following pagination cursors.

        GET /crm/v3/objects/{objectType} with properties and associations.
        """
        entities: list[RawEntity] = []
        after: str | None = None

        while True:
            page = await self._get_page(kind, properties, associations, after)
            results = page.get("results", [])
            entities.extend(self._to_raw_entity(item) for item in results)
            progress.tick(len(results))

            after = page.get("paging", {}).get("next", {}).get("after")
            if not after:
                break

        logger.info(
            "hubspot.download_complete",
            kind=kind.value,
            count=len(entities),
        )
        return entities

    @_hubspot_retry
    async def _get_page(
        self,
        kind: EntityKind,
        properties: list[str],
        associations: list[EntityKind],
        after: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "limit": self.PAGE_LIMIT,
            "archived": "false",
        }
        if properties:
            params["properties"] = ",".join(properties)
        if associations:
            params["associations"] = ",".join(OBJECT_TYPES[k] for k in associations)
        if after:
            params["after"] = after

        async with self._client() as client:
            response = await client.get(
                f"{self._base_url}/crm/v3/objects/{OBJECT_TYPES[kind]}",
                params=params,
            )
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _to_raw_entity(item: dict[str, Any]) -> RawEntity:
        """Convert one API object into a RawEntity with ``kind:id`` references."""
        refs: list[str] = []
        for object_type, block in (item.get("associations") or {}).items():
            kind = _KINDS_BY_OBJECT_TYPE.get(object_type)
            if kind is None:
                continue
            for assoc in block.get("results", []):
                ref = make_association_ref(kind, str(assoc["id"]))
                if ref not in refs:
                    refs.append(ref)

        return RawEntity(
            id=str(item["id"]),
            properties=item.get("properties") or {},
            associations=refs,
        )

    # ── Upload ──────────────────────────────────────────────────────────────

    async def create_entities(
        self, kind: EntityKind, entities: list[EntityCreate]
    ) -> list[CreatedEntity]:
        """POST /crm/v3/objects/{objectType}/batch/create in chunks."""
        created: list[CreatedEntity] = []
        for batch in _batches(entities, self._batch_size):
            data = await self._post(
                f"/crm/v3/objects/{OBJECT_TYPES[kind]}/batch/create",
                {"inputs": [e.model_dump() for e in batch]},
            )
            created.extend(
                CreatedEntity(id=str(r["id"]), properties=r.get("properties") or {})
                for r in data.get("results", [])
            )
        logger.info("hubspot.batch_created", kind=kind.value, count=len(created))
        return created

    async def update_entities(self, kind: EntityKind, entities: list[EntityUpdate]) -> None:
        """POST /crm/v3/objects/{objectType}/batch/update in chunks."""
        for batch in _batches(entities, self._batch_size):
            await self._post(
                f"/crm/v3/objects/{OBJECT_TYPES[kind]}/batch/update",
                {"inputs": [e.model_dump() for e in batch]},
            )
        logger.info("hubspot.batch_updated", kind=kind.value, count=len(entities))

    async def create_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        """POST /crm/v3/associations/{from}/{to}/batch/create in chunks."""
        await self._post_associations("create", from_kind, to_kind, inputs)

    async def delete_associations(
        self,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        """POST /crm/v3/associations/{from}/{to}/batch/archive in chunks."""
        await self._post_associations("archive", from_kind, to_kind, inputs)

    async def _post_associations(
        self,
        action: str,
        from_kind: EntityKind,
        to_kind: EntityKind,
        inputs: list[AssociationInput],
    ) -> None:
        path = (
            f"/crm/v3/associations/{OBJECT_TYPES[from_kind]}/{OBJECT_TYPES[to_kind]}"
            f"/batch/{action}"
        )
        association_type = f"{from_kind.value}_to_{to_kind.value}"
        for batch in _batches(inputs, self._batch_size):
            await self._post(
                path,
                {
                    "inputs": [
                        {
                            "from": {"id": i.from_id},
                            "to": {"id": i.to_id},
                            "type": association_type,
                        }
                        for i in batch
                    ]
                },
            )
        logger.info(
            "hubspot.associations_written",
            action=action,
            from_kind=from_kind.value,
            to_kind=to_kind.value,
            count=len(inputs),
        )

    @_hubspot_retry
    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.post(f"{self._base_url}{path}", json=payload)
            response.raise_for_status()
            return response.json() if response.content else {}
