"""Object storage client — prefix listing and bulk delete over the storage gateway.

The gateway speaks a small JSON API:

    GET  /objects?prefix=<p>&cursor=<c>  -> {"objects": [{"key": ...}], "truncated": bool, "cursor": str}
    POST /objects/delete {"keys": [...]} -> {"deleted": int}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.core.config import get_settings
from app.services.lifecycle import SLUG_PATTERN

logger = logging.getLogger(__name__)

# Keys per bulk-delete request
DELETE_BATCH_SIZE = 1000


class ObjectStorageError(Exception):
    """Raised when the storage gateway returns an error response."""


def tenant_storage_prefix(slug: str) -> str:
    if not slug or not SLUG_PATTERN.fullmatch(slug):
        raise ValueError(f"Invalid tenant slug for storage prefix: {slug!r}")
    return f"tenants/{slug}/"


@dataclass
class PurgeResult:
    prefix: str
    listed: int = 0
    deleted: int = 0


class ObjectStorageClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.object_storage_url).rstrip("/")
        self.token = token if token is not None else settings.object_storage_token
        self.timeout = timeout if timeout is not None else settings.object_storage_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def delete_by_prefix(self, prefix: str) -> PurgeResult:
        """List every object under ``prefix`` and delete them in batches."""
        if not prefix:
            raise ValueError("Refusing to delete with an empty prefix")

        result = PurgeResult(prefix=prefix)
        async with self._client() as client:
            cursor: str | None = None
            while True:
                params = {"prefix": prefix}
                if cursor:
                    params["cursor"] = cursor
                resp = await client.get("/objects", params=params)
                _raise_for_status(resp, "list")
                page = resp.json()

                keys = [obj["key"] for obj in page.get("objects", [])]
                result.listed += len(keys)
                for start in range(0, len(keys), DELETE_BATCH_SIZE):
                    batch = keys[start:start + DELETE_BATCH_SIZE]
                    resp = await client.post("/objects/delete", json={"keys": batch})
                    _raise_for_status(resp, "delete")
                    result.deleted += int(resp.json().get("deleted", len(batch)))

                cursor = page.get("cursor")
                if not page.get("truncated") or not cursor:
                    break

        logger.info("Purged %d objects under %s", result.deleted, prefix)
        return result


def _raise_for_status(resp: httpx.Response, operation: str) -> None:
    if resp.is_success:
        return
    raise ObjectStorageError(
        f"Storage {operation} failed: HTTP {resp.status_code} {resp.text[:200]}"
    )
