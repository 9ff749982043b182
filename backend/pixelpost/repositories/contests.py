"""
Persistence boundary for the contest aggregate.

A Contest row owns its entries, votes and winners; they are loaded with it
(selectin) and written with it. `save` commits the whole unit. Contest rows
carry a version counter, so a commit built on a stale read fails instead of
silently overwriting another request's changes.

No business rules live here.
"""
from __future__ import annotations
from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID
import structlog
from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from pixelpost.models.contest import Contest, ContestEntry
from pixelpost.services.errors import Conflict

log = structlog.get_logger()

STALE_MESSAGE = "Contest was modified concurrently, retry the request"


class ContestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, contest: Contest) -> Contest:
        self.session.add(contest)
        await self.save(contest)
        return contest

    async def get(self, contest_id: UUID, fresh: bool = False) -> Contest | None:
        # fresh: reload even if the identity map holds a (possibly expired) copy
        return await self.session.get(Contest, contest_id, populate_existing=fresh)

    async def list_all(self) -> Sequence[Contest]:
        return (await self.session.execute(select(Contest))).scalars().all()

    async def list_by_status(self, statuses: Iterable[str]) -> Sequence[Contest]:
        q = select(Contest).where(Contest.status.in_(list(statuses)))
        return (await self.session.execute(q)).scalars().all()

    async def list_for_entrant(self, user_id: str) -> Sequence[Contest]:
        q = select(Contest).where(Contest.entries.any(ContestEntry.user_id == user_id))
        return (await self.session.execute(q)).scalars().all()

    async def list_due_for_transition(self, now: datetime) -> Sequence[Contest]:
        q = select(Contest).where(
            or_(
                and_(Contest.status == "upcoming", Contest.start_date <= now),
                and_(Contest.status == "active", Contest.end_date <= now),
            )
        )
        return (await self.session.execute(q)).scalars().all()

    def touch(self, contest: Contest, now: datetime) -> None:
        # always dirty the contest row so the version check runs, even when
        # only children changed and the timestamp is unchanged
        contest.updated_at = now
        flag_modified(contest, "updated_at")

    async def save(self, contest: Contest) -> None:
        # rollback expires the instance; read the id before committing
        cid = str(contest.id) if contest.id else None
        try:
            await self.session.commit()
        except StaleDataError:
            await self.session.rollback()
            log.warning("contest.stale_write", contest_id=cid)
            raise Conflict(STALE_MESSAGE)
        except IntegrityError as e:
            await self.session.rollback()
            log.warning("contest.integrity_conflict", contest_id=cid, error=str(e.orig))
            raise Conflict(STALE_MESSAGE)

    async def delete(self, contest: Contest) -> None:
        await self.session.delete(contest)
        await self.save(contest)
