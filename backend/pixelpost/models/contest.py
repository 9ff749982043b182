from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Float, Text, ForeignKey, UniqueConstraint, CheckConstraint, Uuid
from pixelpost.db import Base, UTCDateTime

class Contest(Base):
    __tablename__ = "contests"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False)
    theme: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="upcoming", index=True)  # upcoming|active|completed
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    entries: Mapped[list[ContestEntry]] = relationship(
        back_populates="contest",
        cascade="all, delete-orphan",
        order_by="ContestEntry.position",
        lazy="selectin",
    )
    winners: Mapped[list[ContestWinner]] = relationship(
        back_populates="contest",
        cascade="all, delete-orphan",
        order_by="ContestWinner.rank",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_contest_end_after_start"),
    )

    def find_entry(self, entry_id: uuid.UUID) -> ContestEntry | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    def entry_for_user(self, user_id: str) -> ContestEntry | None:
        return next((e for e in self.entries if e.user_id == user_id), None)


class ContestEntry(Base):
    __tablename__ = "contest_entries"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contest_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contests.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    # posts are owned elsewhere; plain reference, no FK
    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # submission order, never renumbered
    relevancy_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    submitted_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    contest: Mapped[Contest] = relationship(back_populates="entries")
    voters: Mapped[list[ContestVote]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="ContestVote.cast_at",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("contest_id", "user_id", name="uq_contest_entry_one_per_user"),
    )

    def vote_by(self, user_id: str) -> ContestVote | None:
        return next((v for v in self.voters if v.user_id == user_id), None)


class ContestVote(Base):
    __tablename__ = "contest_votes"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entry_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contest_entries.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    cast_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    entry: Mapped[ContestEntry] = relationship(back_populates="voters")

    __table_args__ = (
        UniqueConstraint("entry_id", "user_id", name="uq_contest_vote_once_per_voter"),
        CheckConstraint("score >= 1 AND score <= 10", name="ck_contest_vote_score_range"),
    )


class ContestWinner(Base):
    __tablename__ = "contest_winners"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contest_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contests.id", ondelete="CASCADE"), index=True, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    post_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    relevancy_score: Mapped[float] = mapped_column(Float, nullable=False)

    contest: Mapped[Contest] = relationship(back_populates="winners")
