from __future__ import annotations
from typing import Iterable
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pixelpost.models.post import Post


class PostDirectory:
    """Read-only lookups of posts that contest entries point at."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, post_id: UUID) -> Post | None:
        return await self.session.get(Post, post_id)

    async def get_many(self, post_ids: Iterable[UUID]) -> dict[UUID, Post]:
        ids = list({pid for pid in post_ids})
        if not ids:
            return {}
        rows = (await self.session.execute(select(Post).where(Post.id.in_(ids)))).scalars().all()
        return {p.id: p for p in rows}
