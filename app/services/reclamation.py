"""Orphan user reclamation.

After a tenant's memberships are gone, delete the global users who no longer
belong to any tenant. Work is split into chunks of at most
``max_in_clause_params`` ids so no statement binds more parameters than the
database allows. Each chunk commits on its own; a failed chunk is logged and
skipped.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import partial

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.membership import TenantMember
from app.models.user import User, UserRelationship, UserRole
from app.services.best_effort import attempt

logger = logging.getLogger(__name__)


@dataclass
class ReclamationResult:
    candidates: int = 0
    deleted: list[uuid.UUID] = field(default_factory=list)
    still_members: int = 0
    protected_admins: int = 0
    failed_chunks: int = 0


def chunked(ids: Sequence[uuid.UUID], size: int) -> Iterator[list[uuid.UUID]]:
    for start in range(0, len(ids), size):
        yield list(ids[start:start + size])


class OrphanReclaimer:
    def __init__(self, session: AsyncSession, chunk_size: int | None = None):
        self.session = session
        self.chunk_size = chunk_size or get_settings().max_in_clause_params
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")

    async def reclaim(self, user_ids: Iterable[uuid.UUID]) -> ReclamationResult:
        candidates = list(dict.fromkeys(user_ids))
        result = ReclamationResult(candidates=len(candidates))

        for index, chunk in enumerate(chunked(candidates, self.chunk_size)):
            outcome = await attempt(
                f"reclaim users chunk {index}", partial(self._reclaim_chunk, chunk, result),
            )
            if not outcome.ok:
                result.failed_chunks += 1

        if candidates:
            logger.info(
                "Reclaimed %d of %d candidate users (%d still members, %d admins, %d failed chunks)",
                len(result.deleted), result.candidates, result.still_members,
                result.protected_admins, result.failed_chunks,
            )
        return result

    async def _reclaim_chunk(self, chunk: list[uuid.UUID], result: ReclamationResult) -> None:
        try:
            members = await self._still_members(chunk)
            admins = await self._platform_admins(chunk) - members
            eligible = [uid for uid in chunk if uid not in members and uid not in admins]

            if eligible:
                # Each IN list stays within one chunk's worth of parameters
                await self.session.execute(
                    delete(UserRelationship)
                    .where(UserRelationship.parent_user_id.in_(eligible))  # type: ignore[attr-defined]
                    .execution_options(synchronize_session=False)
                )
                await self.session.execute(
                    delete(UserRelationship)
                    .where(UserRelationship.child_user_id.in_(eligible))  # type: ignore[attr-defined]
                    .execution_options(synchronize_session=False)
                )
                await self.session.execute(
                    delete(User)
                    .where(User.id.in_(eligible))  # type: ignore[attr-defined]
                    .execution_options(synchronize_session=False)
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        result.still_members += len(members)
        result.protected_admins += len(admins)
        result.deleted.extend(eligible)

    async def _still_members(self, chunk: list[uuid.UUID]) -> set[uuid.UUID]:
        rows = await self.session.execute(
            select(TenantMember.user_id)
            .where(TenantMember.user_id.in_(chunk))  # type: ignore[attr-defined]
            .distinct()
        )
        return set(rows.scalars().all())

    async def _platform_admins(self, chunk: list[uuid.UUID]) -> set[uuid.UUID]:
        rows = await self.session.execute(
            select(User.id).where(
                User.id.in_(chunk),  # type: ignore[attr-defined]
                or_(User.is_platform_admin.is_(True), User.role == UserRole.ADMIN),  # type: ignore[attr-defined]
            )
        )
        return set(rows.scalars().all())
