"""create comments table

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "comments",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("video_id", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("date_created", sa.String(length=64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("dislikes", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_index("ix_comments_video_id", "comments", ["video_id"])


def downgrade() -> None:
    op.drop_index("ix_comments_video_id", table_name="comments")
    op.drop_table("comments")
