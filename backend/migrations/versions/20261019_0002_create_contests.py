from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "contests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("theme", sa.String(200), nullable=False),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("end_date > start_date", name="ck_contest_end_after_start"),
    )
    op.create_index("ix_contests_status", "contests", ["status"])

    op.create_table(
        "contest_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("contest_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("relevancy_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_contest_entries_contest_id", "contest_entries", ["contest_id"])
    op.create_index("ix_contest_entries_user_id", "contest_entries", ["user_id"])
    op.create_index("ix_contest_entries_post_id", "contest_entries", ["post_id"])
    op.create_unique_constraint("uq_contest_entry_one_per_user", "contest_entries", ["contest_id", "user_id"])

    op.create_table(
        "contest_votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("contest_entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("cast_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("score >= 1 AND score <= 10", name="ck_contest_vote_score_range"),
    )
    op.create_index("ix_contest_votes_entry_id", "contest_votes", ["entry_id"])
    op.create_unique_constraint("uq_contest_vote_once_per_voter", "contest_votes", ["entry_id", "user_id"])

    op.create_table(
        "contest_winners",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("contest_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("relevancy_score", sa.Float(), nullable=False),
    )
    op.create_index("ix_contest_winners_contest_id", "contest_winners", ["contest_id"])

def downgrade() -> None:
    op.drop_index("ix_contest_winners_contest_id", table_name="contest_winners")
    op.drop_table("contest_winners")
    op.drop_constraint("uq_contest_vote_once_per_voter", "contest_votes", type_="unique")
    op.drop_index("ix_contest_votes_entry_id", table_name="contest_votes")
    op.drop_table("contest_votes")
    op.drop_constraint("uq_contest_entry_one_per_user", "contest_entries", type_="unique")
    op.drop_index("ix_contest_entries_post_id", table_name="contest_entries")
    op.drop_index("ix_contest_entries_user_id", table_name="contest_entries")
    op.drop_index("ix_contest_entries_contest_id", table_name="contest_entries")
    op.drop_table("contest_entries")
    op.drop_index("ix_contests_status", table_name="contests")
    op.drop_table("contests")
