"""Object storage purge: gateway client, ARQ job, and enqueue helper."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.services.object_storage import (
    ObjectStorageClient,
    ObjectStorageError,
    tenant_storage_prefix,
)
from app.workers.storage import enqueue_storage_purge, purge_tenant_storage


def _gateway(pages: list[list[str]], deleted: list[str], fail_on: str | None = None):
    """Fake gateway serving ``pages`` of keys and recording deletes."""
    seen_auth: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_auth.append(request.headers.get("authorization"))
        if fail_on and request.url.path.endswith(fail_on):
            return httpx.Response(503, text="unavailable")
        if request.method == "GET" and request.url.path == "/objects":
            cursor = int(request.url.params.get("cursor", "0"))
            keys = pages[cursor] if cursor < len(pages) else []
            more = cursor + 1 < len(pages)
            return httpx.Response(200, json={
                "objects": [{"key": k} for k in keys],
                "truncated": more,
                "cursor": str(cursor + 1) if more else None,
            })
        if request.method == "POST" and request.url.path == "/objects/delete":
            keys = json.loads(request.content)["keys"]
            deleted.extend(keys)
            return httpx.Response(200, json={"deleted": len(keys)})
        return httpx.Response(404)

    return httpx.MockTransport(handler), seen_auth


def test_tenant_storage_prefix():
    assert tenant_storage_prefix("sunrise-yoga") == "tenants/sunrise-yoga/"


@pytest.mark.parametrize("slug", ["", "a/b", "..", "two words", "Upper", "../other"])
def test_tenant_storage_prefix_rejects_unsafe_slugs(slug):
    with pytest.raises(ValueError):
        tenant_storage_prefix(slug)


@pytest.mark.asyncio
async def test_delete_by_prefix_walks_every_page():
    deleted: list[str] = []
    pages = [
        ["tenants/s/videos/a.mp4", "tenants/s/branding/logo.png"],
        ["tenants/s/uploads/w.pdf"],
    ]
    transport, seen_auth = _gateway(pages, deleted)
    client = ObjectStorageClient(base_url="http://storage.test", token="tok", transport=transport)

    result = await client.delete_by_prefix("tenants/s/")

    assert result.listed == 3
    assert result.deleted == 3
    assert deleted == [k for page in pages for k in page]
    assert set(seen_auth) == {"Bearer tok"}


@pytest.mark.asyncio
async def test_delete_by_prefix_with_nothing_stored():
    deleted: list[str] = []
    transport, _ = _gateway([[]], deleted)
    client = ObjectStorageClient(base_url="http://storage.test", token="", transport=transport)

    result = await client.delete_by_prefix("tenants/empty/")
    assert result.deleted == 0
    assert deleted == []


@pytest.mark.asyncio
async def test_delete_by_prefix_raises_on_gateway_error():
    transport, _ = _gateway([["tenants/s/a"]], [], fail_on="/delete")
    client = ObjectStorageClient(base_url="http://storage.test", token="", transport=transport)
    with pytest.raises(ObjectStorageError):
        await client.delete_by_prefix("tenants/s/")


@pytest.mark.asyncio
async def test_delete_by_prefix_refuses_empty_prefix():
    client = ObjectStorageClient(base_url="http://storage.test", token="")
    with pytest.raises(ValueError):
        await client.delete_by_prefix("")


# ── ARQ job ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_purge_job_deletes_tenant_prefix():
    deleted: list[str] = []
    transport, _ = _gateway([["tenants/gone/videos/1.mp4"]], deleted)
    storage = ObjectStorageClient(base_url="http://storage.test", token="", transport=transport)

    result = await purge_tenant_storage({"storage": storage}, "gone")

    assert result == {"slug": "gone", "ok": True, "deleted": 1}
    assert deleted == ["tenants/gone/videos/1.mp4"]


@pytest.mark.asyncio
async def test_purge_job_swallows_storage_errors():
    transport, _ = _gateway([], [], fail_on="/objects")
    storage = ObjectStorageClient(base_url="http://storage.test", token="", transport=transport)

    result = await purge_tenant_storage({"storage": storage}, "gone")
    assert result == {"slug": "gone", "ok": False, "deleted": 0}


# ── Enqueue ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_enqueue_storage_purge():
    redis = AsyncMock()
    with patch("app.workers.storage.create_pool", AsyncMock(return_value=redis)):
        await enqueue_storage_purge("gone")

    redis.enqueue_job.assert_awaited_once_with("purge_tenant_storage", slug="gone")
    redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_enqueue_storage_purge_swallows_redis_errors():
    with patch("app.workers.storage.create_pool", AsyncMock(side_effect=ConnectionError("down"))):
        await enqueue_storage_purge("gone")


@pytest.mark.asyncio
async def test_enqueue_failure_still_closes_pool():
    redis = AsyncMock()
    redis.enqueue_job.side_effect = ConnectionError("lost")
    with patch("app.workers.storage.create_pool", AsyncMock(return_value=redis)):
        await enqueue_storage_purge("gone")
    redis.aclose.assert_awaited_once()
