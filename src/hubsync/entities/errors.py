"""Fatal synchronization errors.

Every error here aborts the run. None of them are retried: each one means
the local mirror and HubSpot can no longer be mapped onto each other safely.
Each carries its diagnostic context as attributes and renders it as JSON in
the message so a failed run can be diagnosed from the log alone.
"""

from __future__ import annotations

import json
from typing import Any


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True, default=_jsonable)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if hasattr(value, "value"):
        return value.value
    return str(value)


class SyncError(Exception):
    """Base class for unrecoverable synchronization errors."""


class ConfigurationMappingError(SyncError):
    """A remote value matched none of the configured enumerated values.

    Attributes:
        mapping: The configured mapping (local value -> remote value).
        api_value: The remote value that could not be mapped.
    """

    def __init__(self, mapping: dict[Any, str], api_value: str | None) -> None:
        self.mapping = mapping
        self.api_value = api_value
        super().__init__(
            "Cannot find configured mapping: "
            + _dump({"mapping": {str(_jsonable(k)): v for k, v in mapping.items()}, "api_value": api_value})
        )


class ReferentialIntegrityError(SyncError):
    """An entity id could not be resolved to an entity.

    Raised for dangling association references, for references to entities
    that were never downloaded, and for entities without a remote id where
    one is required.

    Attributes:
        kind: Kind of the entity that could not be resolved.
        entity_id: The id that failed to resolve (None for "no id yet").
    """

    def __init__(self, kind: str, entity_id: str | None, detail: str = "") -> None:
        self.kind = kind
        self.entity_id = entity_id
        message = f"Couldn't find kind={kind} id={entity_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class IdentityResolutionError(SyncError):
    """A newly created local entity matched zero or several creation results.

    Attributes:
        kind: Kind of the entities being created.
        local: Data of the local entity being resolved.
        remotes: All creation results returned by the batch.
        match_count: Number of results that matched (0 or more than 1).
    """

    def __init__(
        self,
        kind: str,
        local: dict[str, Any],
        remotes: list[dict[str, Any]],
        match_count: int,
        reason: str | None = None,
    ) -> None:
        self.kind = kind
        self.local = local
        self.remotes = remotes
        self.match_count = match_count
        if reason is None:
            problem = "no matching" if match_count == 0 else f"{match_count} ambiguous"
            reason = f"Found {problem} created {kind} records for local entity"
        super().__init__(f"{reason}: " + _dump({"local": local, "remotes": remotes}))
