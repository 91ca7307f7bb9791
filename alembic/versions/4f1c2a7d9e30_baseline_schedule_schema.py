"""baseline schedule schema

Revision ID: 4f1c2a7d9e30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "4f1c2a7d9e30"
down_revision = None
branch_labels = None
depends_on = None


def _pair_table(name: str) -> None:
  op.create_table(
    name,
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("target_id", sa.Integer(), sa.ForeignKey("targets.id", ondelete="CASCADE"), nullable=False),
    sa.Column("lesson_a", sa.Integer(), sa.ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False),
    sa.Column("lesson_b", sa.Integer(), sa.ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False),
    sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(f"ix_{name}_target_id", name, ["target_id"])


def upgrade():
  op.create_table(
    "targets",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("target_kind", sa.Integer(), nullable=False),
    sa.Column("remote_id", sa.Integer(), nullable=False),
    sa.Column("checksum", sa.String(length=36), nullable=True),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("target_kind", "remote_id", name="ux_targets_kind_remote_id"),
  )

  op.create_table(
    "lessons",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("target_id", sa.Integer(), sa.ForeignKey("targets.id", ondelete="CASCADE"), nullable=False),
    sa.Column("location", sa.Text(), nullable=False),
    sa.Column("summary", sa.Text(), nullable=False),
    sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_lessons_target_id", "lessons", ["target_id"])

  _pair_table("distant_classrooms")
  _pair_table("large_gaps")

  op.create_table(
    "unbalanced_weeks",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("target_id", sa.Integer(), sa.ForeignKey("targets.id", ondelete="CASCADE"), nullable=False),
    sa.Column("week_start", sa.DateTime(timezone=True), nullable=False),
    sa.Column("daily_counts", postgresql.ARRAY(sa.Integer()), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_unbalanced_weeks_target_id", "unbalanced_weeks", ["target_id"])


def downgrade():
  op.drop_index("ix_unbalanced_weeks_target_id", table_name="unbalanced_weeks")
  op.drop_table("unbalanced_weeks")
  op.drop_index("ix_large_gaps_target_id", table_name="large_gaps")
  op.drop_table("large_gaps")
  op.drop_index("ix_distant_classrooms_target_id", table_name="distant_classrooms")
  op.drop_table("distant_classrooms")
  op.drop_index("ix_lessons_target_id", table_name="lessons")
  op.drop_table("lessons")
  op.drop_table("targets")
