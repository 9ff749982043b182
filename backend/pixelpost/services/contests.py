"""
Contest operations: admin CRUD, submission, voting, entry removal, winner
calculation, status refresh and the read models the routes serve.

Every precondition is checked before anything is mutated, so a failed call
leaves the contest untouched. Gating uses the stored `status`; it is only
moved forward by `refresh_statuses` or recomputed when an admin creates or
edits a contest.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from typing import Any, Callable, Sequence
from uuid import UUID
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pixelpost.events import EventBroker, CONTESTS_CHANNEL
from pixelpost.models.contest import Contest, ContestEntry, ContestVote, ContestWinner
from pixelpost.models.post import Post
from pixelpost.repositories.contests import ContestRepository
from pixelpost.repositories.posts import PostDirectory
from pixelpost.services import lifecycle, scoring
from pixelpost.services.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError

log = structlog.get_logger()

Clock = Callable[[], datetime]

OPEN_STATUSES = ("active", "upcoming")


def utcnow() -> datetime:
    return datetime.now(dt_tz.utc)


def _as_uuid(value: UUID | str | None) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


@dataclass
class VoteResult:
    entry_id: UUID
    new_score: float


@dataclass
class StatusChange:
    contest_id: UUID
    title: str
    previous_status: str
    new_status: str


class ContestService:
    def __init__(self, session: AsyncSession, broker: EventBroker | None = None, clock: Clock = utcnow):
        self.contests = ContestRepository(session)
        self.posts = PostDirectory(session)
        self.broker = broker
        self.clock = clock

    async def _publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        if self.broker is not None:
            await self.broker.publish(channel, event, payload)

    async def _load(self, contest_id: UUID | str) -> Contest:
        cid = _as_uuid(contest_id)
        contest = await self.contests.get(cid) if cid else None
        if not contest:
            raise NotFound("Contest not found")
        return contest

    def _find_entry(self, contest: Contest, entry_id: UUID | str) -> ContestEntry:
        eid = _as_uuid(entry_id)
        entry = contest.find_entry(eid) if eid else None
        if not entry:
            raise NotFound("Entry not found")
        return entry

    @staticmethod
    def _require_active(contest: Contest) -> None:
        if contest.status != "active":
            raise InvalidState(lifecycle.not_active_message(contest.status))

    @staticmethod
    def _check_window(start: datetime, end: datetime) -> None:
        if end <= start:
            raise ValidationError("End date must be after start date")

    # ---------- admin ----------

    async def create_contest(self, *, title: str, description: str, theme: str, start_date: datetime, end_date: datetime) -> Contest:
        self._check_window(start_date, end_date)
        now = self.clock()
        contest = Contest(
            title=title,
            description=description,
            theme=theme,
            start_date=start_date,
            end_date=end_date,
            status=lifecycle.derive_status(now, start_date, end_date),
            created_at=now,
            updated_at=now,
            entries=[],
            winners=[],
        )
        await self.contests.create(contest)
        log.info("contest.created", contest_id=str(contest.id), status=contest.status)
        return contest

    async def update_contest(
        self,
        contest_id: UUID | str,
        *,
        title: str | None = None,
        description: str | None = None,
        theme: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Contest:
        contest = await self._load(contest_id)
        start = start_date or contest.start_date
        end = end_date or contest.end_date
        self._check_window(start, end)

        now = self.clock()
        if title:
            contest.title = title
        if description:
            contest.description = description
        if theme:
            contest.theme = theme
        contest.start_date = start
        contest.end_date = end
        # edits re-derive status from the (possibly new) window
        contest.status = lifecycle.derive_status(now, start, end)
        self.contests.touch(contest, now)
        await self.contests.save(contest)
        log.info("contest.updated", contest_id=str(contest.id), status=contest.status)
        return contest

    async def delete_contest(self, contest_id: UUID | str) -> None:
        contest = await self._load(contest_id)
        cid = str(contest.id)
        await self.contests.delete(contest)
        log.info("contest.deleted", contest_id=cid)

    # ---------- reads ----------

    async def get_contest(self, contest_id: UUID | str) -> Contest:
        return await self._load(contest_id)

    async def list_open(self) -> list[Contest]:
        rows = await self.contests.list_by_status(OPEN_STATUSES)
        return sorted(rows, key=lifecycle.public_sort_key)

    async def list_all(self) -> list[Contest]:
        return sorted(await self.contests.list_all(), key=lifecycle.full_sort_key)

    async def list_for_admin(self) -> list[Contest]:
        return sorted(await self.contests.list_all(), key=lifecycle.admin_sort_key)

    async def user_entries(self, user_id: str) -> list[tuple[Contest, ContestEntry]]:
        out: list[tuple[Contest, ContestEntry]] = []
        for contest in await self.contests.list_for_entrant(user_id):
            entry = contest.entry_for_user(user_id)
            if entry:
                out.append((contest, entry))
        return out

    async def leaderboard(self, contest_id: UUID | str) -> tuple[Contest, list[tuple[int, ContestEntry]]]:
        contest = await self._load(contest_id)
        return contest, scoring.leaderboard_rows(contest.entries)

    async def posts_for(self, post_ids) -> dict[UUID, Post]:
        return await self.posts.get_many(post_ids)

    # ---------- entrants ----------

    async def submit(self, contest_id: UUID | str, user_id: str, username: str, post_id: UUID | str) -> ContestEntry:
        contest = await self._load(contest_id)
        self._require_active(contest)
        if contest.entry_for_user(user_id):
            raise Conflict("You have already submitted an entry to this contest")

        pid = _as_uuid(post_id)
        post = await self.posts.get(pid) if pid else None
        if not post:
            raise NotFound("Post not found")
        if post.user_id != user_id:
            raise Forbidden("You can only submit your own posts")

        now = self.clock()
        entry = ContestEntry(
            user_id=user_id,
            username=username,
            post_id=post.id,
            position=max((e.position for e in contest.entries), default=-1) + 1,
            relevancy_score=0.0,
            submitted_at=now,
            voters=[],
        )
        contest.entries.append(entry)
        self.contests.touch(contest, now)
        await self.contests.save(contest)

        log.info("contest.entry_submitted", contest_id=str(contest.id), entry_id=str(entry.id), user_id=user_id)
        await self._publish(CONTESTS_CHANNEL, "contest.entry_submitted", {
            "contestId": str(contest.id),
            "entryId": str(entry.id),
            "userId": user_id,
            "username": username,
        })
        return entry

    async def vote(self, contest_id: UUID | str, entry_id: UUID | str, voter_user_id: str, score: Any) -> VoteResult:
        score = scoring.validate_score(score)
        contest = await self._load(contest_id)
        self._require_active(contest)
        entry = self._find_entry(contest, entry_id)
        if entry.user_id == voter_user_id:
            raise Forbidden("You cannot vote on your own entry")

        now = self.clock()
        existing = entry.vote_by(voter_user_id)
        if existing:
            existing.score = score
            existing.cast_at = now
        else:
            entry.voters.append(ContestVote(user_id=voter_user_id, score=score, cast_at=now))
        entry.relevancy_score = scoring.compute_relevancy(entry.voters)
        self.contests.touch(contest, now)
        await self.contests.save(contest)

        log.info(
            "contest.vote_recorded",
            contest_id=str(contest.id), entry_id=str(entry.id), voter_id=voter_user_id,
            replaced=bool(existing), new_score=entry.relevancy_score,
        )
        await self._publish(entry.user_id, "contest.vote_recorded", {
            "contestId": str(contest.id),
            "contestTitle": contest.title,
            "entryId": str(entry.id),
            "newScore": entry.relevancy_score,
            "voterCount": len(entry.voters),
        })
        return VoteResult(entry_id=entry.id, new_score=entry.relevancy_score)

    async def remove_entry(self, contest_id: UUID | str, entry_id: UUID | str, requester_user_id: str) -> None:
        contest = await self._load(contest_id)
        entry = self._find_entry(contest, entry_id)
        if entry.user_id != requester_user_id:
            raise Forbidden("You can only remove your own entries")
        if contest.status == "completed":
            raise InvalidState("Cannot remove entries from completed contests")

        eid = str(entry.id)
        contest.entries.remove(entry)
        self.contests.touch(contest, self.clock())
        await self.contests.save(contest)
        log.info("contest.entry_removed", contest_id=str(contest.id), entry_id=eid, user_id=requester_user_id)

    # ---------- lifecycle ----------

    async def calculate_winners(self, contest_id: UUID | str) -> list[ContestWinner]:
        contest = await self._load(contest_id)
        if contest.status != "completed":
            raise InvalidState("Cannot calculate winners for a contest that is not completed")

        contest.winners = [
            ContestWinner(
                rank=rank,
                user_id=e.user_id,
                username=e.username,
                post_id=e.post_id,
                relevancy_score=e.relevancy_score,
            )
            for rank, e in enumerate(scoring.top_entries(contest.entries), start=1)
        ]
        self.contests.touch(contest, self.clock())
        await self.contests.save(contest)

        log.info("contest.winners_calculated", contest_id=str(contest.id), winners=len(contest.winners))
        for w in contest.winners:
            await self._publish(w.user_id, "contest.winners_calculated", {
                "contestId": str(contest.id),
                "contestTitle": contest.title,
                "rank": w.rank,
                "relevancyScore": w.relevancy_score,
            })
        return list(contest.winners)

    async def refresh_statuses(self, now: datetime | None = None) -> list[StatusChange]:
        """
        Advance stored statuses whose boundary has passed. Safe to repeat:
        with the same (or a later but boundary-free) `now` nothing changes.
        A contest another writer touched meanwhile is skipped and picked up
        by the next run.
        """
        now = now or self.clock()
        due_ids = [c.id for c in await self.contests.list_due_for_transition(now)]
        changes: list[StatusChange] = []
        for cid in due_ids:
            contest = await self.contests.get(cid, fresh=True)
            if not contest:
                continue
            previous = contest.status
            new = lifecycle.next_status(previous, contest.start_date, contest.end_date, now)
            if new == previous:
                continue
            contest.status = new
            self.contests.touch(contest, now)
            try:
                await self.contests.save(contest)
            except Conflict:
                log.warning("contest.refresh_conflict", contest_id=str(cid))
                continue
            change = StatusChange(contest_id=cid, title=contest.title, previous_status=previous, new_status=new)
            changes.append(change)
            log.info("contest.status_changed", contest_id=str(cid), previous=previous, status=new)
            await self._publish(CONTESTS_CHANNEL, "contest.status_changed", {
                "contestId": str(cid),
                "title": change.title,
                "previousStatus": previous,
                "newStatus": new,
            })
        return changes
