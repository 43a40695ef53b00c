"""initial schema

Revision ID: 20261012_0001
Revises:
Create Date: 2026-10-12 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261012_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "conversations",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("owned_by_profile", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("entity_embedding", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_conversations_owned_by_profile", "conversations", ["owned_by_profile"], unique=False)

    op.create_table(
        "conversation_entities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("context_snippet", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_conversation_entities_conversation_id",
        "conversation_entities",
        ["conversation_id"],
        unique=False,
    )
    op.create_index("ix_conversation_entities_entity_type", "conversation_entities", ["entity_type"], unique=False)

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("owned_by_profile", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("investor_notes", sa.Text(), nullable=True),
        sa.Column("thesis_embedding", sa.Text(), nullable=True),
        sa.Column("bio_embedding", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contacts_owned_by_profile", "contacts", ["owned_by_profile"], unique=False)

    op.create_table(
        "theses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contact_id", sa.String(length=255), nullable=False),
        sa.Column("sectors", sa.JSON(), nullable=False),
        sa.Column("stages", sa.JSON(), nullable=False),
        sa.Column("check_sizes", sa.JSON(), nullable=False),
        sa.Column("geos", sa.JSON(), nullable=False),
        sa.Column("personas", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_theses_contact_id", "theses", ["contact_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_theses_contact_id", table_name="theses")
    op.drop_table("theses")
    op.drop_index("ix_contacts_owned_by_profile", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_conversation_entities_entity_type", table_name="conversation_entities")
    op.drop_index("ix_conversation_entities_conversation_id", table_name="conversation_entities")
    op.drop_table("conversation_entities")
    op.drop_index("ix_conversations_owned_by_profile", table_name="conversations")
    op.drop_table("conversations")
