"""Contact ORM model."""

from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin


class Contact(Base, CreatedAtMixin):
    """Person in a profile's network who may receive an introduction."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=lambda: str(uuid4()))
    owned_by_profile: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    investor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    thesis_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)

    theses: Mapped[list["Thesis"]] = relationship(  # noqa: F821
        back_populates="contact",
        cascade="all, delete-orphan",
        order_by="Thesis.id",
    )
