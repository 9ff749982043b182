from __future__ import annotations
from typing import Iterable
from uuid import UUID
from pixelpost.models.contest import Contest, ContestEntry, ContestWinner
from pixelpost.models.post import Post
from pixelpost.schemas.contest import (
    ContestPublic, EntryPublic, WinnerPublic, VotePublic, PostReference, PostExpanded, LeaderboardRow,
)

PostMap = dict[UUID, Post]

def post_ref(post_id: UUID, posts: PostMap | None):
    """Expanded post when it was fetched for this response, bare reference otherwise."""
    post = (posts or {}).get(post_id)
    if post is None:
        return PostReference(id=post_id)
    return PostExpanded(id=post.id, name=post.name, prompt=post.prompt, photo=post.photo)

def entry_public(e: ContestEntry, posts: PostMap | None = None) -> EntryPublic:
    return EntryPublic(
        id=e.id,
        user_id=e.user_id,
        username=e.username,
        post_id=post_ref(e.post_id, posts),
        relevancy_score=e.relevancy_score,
        voters=[VotePublic(user_id=v.user_id, score=v.score) for v in e.voters],
        submitted_at=e.submitted_at,
    )

def winner_public(w: ContestWinner, posts: PostMap | None = None) -> WinnerPublic:
    return WinnerPublic(
        rank=w.rank,
        user_id=w.user_id,
        username=w.username,
        post_id=post_ref(w.post_id, posts),
        relevancy_score=w.relevancy_score,
    )

def contest_public(c: Contest, entry_posts: PostMap | None = None, winner_posts: PostMap | None = None) -> ContestPublic:
    return ContestPublic(
        id=c.id,
        title=c.title,
        description=c.description,
        theme=c.theme,
        start_date=c.start_date,
        end_date=c.end_date,
        status=c.status,
        entries=[entry_public(e, entry_posts) for e in c.entries],
        winners=[winner_public(w, winner_posts) for w in c.winners],
        created_at=c.created_at,
        updated_at=c.updated_at,
    )

def leaderboard_row(rank: int, e: ContestEntry, posts: PostMap | None = None) -> LeaderboardRow:
    return LeaderboardRow(
        rank=rank,
        user_id=e.user_id,
        username=e.username,
        post_id=post_ref(e.post_id, posts),
        relevancy_score=e.relevancy_score,
        voter_count=len(e.voters),
    )

def entry_post_ids(entries: Iterable[ContestEntry]) -> list[UUID]:
    return [e.post_id for e in entries]
