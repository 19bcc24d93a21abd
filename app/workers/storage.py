"""Background job — purge a deleted tenant's objects from storage."""

from __future__ import annotations

import logging

from arq.connections import ArqRedis, create_pool

from app.services.object_storage import ObjectStorageClient, tenant_storage_prefix

logger = logging.getLogger(__name__)


async def purge_tenant_storage(ctx: dict, slug: str) -> dict:
    """ARQ job: delete everything under ``tenants/{slug}/``. Never raises.

    Tests inject a client via ``ctx["storage"]``.
    """
    storage: ObjectStorageClient = ctx.get("storage") or ObjectStorageClient()
    try:
        result = await storage.delete_by_prefix(tenant_storage_prefix(slug))
    except Exception:
        logger.exception("Storage purge failed for tenant %s", slug)
        return {"slug": slug, "ok": False, "deleted": 0}
    return {"slug": slug, "ok": True, "deleted": result.deleted}


async def enqueue_storage_purge(slug: str) -> None:
    """Enqueue ``purge_tenant_storage``. Swallows Redis errors."""
    from app.workers.main import _redis_settings

    try:
        redis: ArqRedis = await create_pool(_redis_settings())
    except Exception:
        logger.exception("Could not reach Redis to enqueue storage purge for %s", slug)
        return
    try:
        await redis.enqueue_job("purge_tenant_storage", slug=slug)
        logger.info("Enqueued storage purge for tenant %s", slug)
    except Exception:
        logger.exception("Failed to enqueue storage purge for tenant %s", slug)
    finally:
        await redis.aclose()
