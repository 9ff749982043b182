from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pixelpost.db import get_session
from pixelpost.auth_deps import CurrentUser, get_current_user
from pixelpost.events import EventBroker, get_broker
from pixelpost.schemas.contest import (
    ContestPublic, EntryPublic, Envelope, Leaderboard, StatusChangePublic, SubmitRequest,
    UserEntry, VoteReceipt, VoteRequest,
)
from pixelpost.services.contests import ContestService
from pixelpost.routes.presenters import (
    contest_public, entry_public, entry_post_ids, leaderboard_row,
)

router = APIRouter(prefix="/contests", tags=["contests"])

def get_contest_service(
    session: AsyncSession = Depends(get_session),
    broker: EventBroker = Depends(get_broker),
) -> ContestService:
    return ContestService(session, broker)

async def expanded_contest(svc: ContestService, contest) -> ContestPublic:
    entry_posts = await svc.posts_for(entry_post_ids(contest.entries))
    winner_posts = None
    if contest.status == "completed" and contest.winners:
        winner_posts = await svc.posts_for(w.post_id for w in contest.winners)
    return contest_public(contest, entry_posts, winner_posts)

@router.get("", response_model=Envelope[list[ContestPublic]], response_model_exclude_none=True)
async def list_open_contests(svc: ContestService = Depends(get_contest_service)):
    return Envelope(data=[contest_public(c) for c in await svc.list_open()])

@router.get("/all", response_model=Envelope[list[ContestPublic]], response_model_exclude_none=True)
async def list_all_contests(svc: ContestService = Depends(get_contest_service)):
    return Envelope(data=[contest_public(c) for c in await svc.list_all()])

@router.get("/user/entries", response_model=Envelope[list[UserEntry]], response_model_exclude_none=True)
async def my_entries(
    svc: ContestService = Depends(get_contest_service),
    user: CurrentUser = Depends(get_current_user),
):
    pairs = await svc.user_entries(user.user_id)
    posts = await svc.posts_for(e.post_id for _, e in pairs)
    return Envelope(data=[
        UserEntry(
            contest_id=c.id,
            contest_title=c.title,
            contest_theme=c.theme,
            contest_status=c.status,
            entry=entry_public(e, posts),
        )
        for c, e in pairs
    ])

@router.post("/update-statuses", response_model=Envelope[list[StatusChangePublic]])
async def update_statuses(svc: ContestService = Depends(get_contest_service)):
    # meant for the scheduler; see pixelpost.jobs.refresh_statuses
    changes = await svc.refresh_statuses()
    message = f"Updated status for {len(changes)} contests" if changes else "No contests need status updates"
    return Envelope(message=message, data=[
        StatusChangePublic(id=ch.contest_id, title=ch.title, previous_status=ch.previous_status, new_status=ch.new_status)
        for ch in changes
    ])

@router.get("/{contest_id}", response_model=Envelope[ContestPublic], response_model_exclude_none=True)
async def get_contest(contest_id: str, svc: ContestService = Depends(get_contest_service)):
    contest = await svc.get_contest(contest_id)
    return Envelope(data=await expanded_contest(svc, contest))

@router.get("/{contest_id}/leaderboard", response_model=Envelope[Leaderboard], response_model_exclude_none=True)
async def get_leaderboard(contest_id: str, svc: ContestService = Depends(get_contest_service)):
    contest, rows = await svc.leaderboard(contest_id)
    posts = await svc.posts_for(e.post_id for _, e in rows)
    return Envelope(data=Leaderboard(
        contest_id=contest.id,
        contest_title=contest.title,
        contest_status=contest.status,
        leaderboard=[leaderboard_row(rank, e, posts) for rank, e in rows],
    ))

@router.post("/{contest_id}/submit", response_model=Envelope[EntryPublic], status_code=201)
async def submit_entry(
    contest_id: str,
    payload: SubmitRequest,
    svc: ContestService = Depends(get_contest_service),
    user: CurrentUser = Depends(get_current_user),
):
    entry = await svc.submit(contest_id, user.user_id, user.username, payload.post_id)
    return Envelope(message="Entry submitted successfully", data=entry_public(entry))

@router.post("/{contest_id}/vote", response_model=Envelope[VoteReceipt])
async def vote_on_entry(
    contest_id: str,
    payload: VoteRequest,
    svc: ContestService = Depends(get_contest_service),
    user: CurrentUser = Depends(get_current_user),
):
    result = await svc.vote(contest_id, payload.entry_id, user.user_id, payload.score)
    return Envelope(message="Vote recorded successfully", data=VoteReceipt(entry_id=result.entry_id, new_score=result.new_score))

@router.delete("/{contest_id}/entries/{entry_id}", response_model=Envelope[None])
async def remove_entry(
    contest_id: str,
    entry_id: str,
    svc: ContestService = Depends(get_contest_service),
    user: CurrentUser = Depends(get_current_user),
):
    await svc.remove_entry(contest_id, entry_id, user.user_id)
    return Envelope(message="Entry removed successfully", data=None)
