"""Conversation ORM model."""

from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin


class Conversation(Base, CreatedAtMixin):
    """Recorded meeting owned by a profile."""

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=lambda: str(uuid4()))
    owned_by_profile: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # JSON-serialized aggregate entity embedding, written by the embedding cache.
    entity_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)

    entities: Mapped[list["ConversationEntity"]] = relationship(  # noqa: F821
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ConversationEntity.id",
    )
