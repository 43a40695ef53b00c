"""match suggestions

Revision ID: 20261014_0002
Revises: 20261012_0001
Create Date: 2026-10-14 00:00:02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261014_0002"
down_revision: str | None = "20261012_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "match_suggestions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.String(length=255), nullable=False),
        sa.Column("contact_id", sa.String(length=255), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("semantic_similarity", sa.Float(), nullable=True),
        sa.Column("reasons", sa.JSON(), nullable=False),
        sa.Column("justification", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("score BETWEEN 1 AND 3", name="ck_match_suggestions_score_range"),
        sa.CheckConstraint(
            "status IN ('pending', 'promised', 'maybe', 'dismissed')",
            name="ck_match_suggestions_status",
        ),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_match_suggestions_conversation_id", "match_suggestions", ["conversation_id"], unique=False)
    op.create_index("ix_match_suggestions_contact_id", "match_suggestions", ["contact_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_match_suggestions_contact_id", table_name="match_suggestions")
    op.drop_index("ix_match_suggestions_conversation_id", table_name="match_suggestions")
    op.drop_table("match_suggestions")
