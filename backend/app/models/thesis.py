"""Investment thesis ORM model."""

from sqlalchemy import JSON, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, IdMixin


class Thesis(Base, IdMixin, CreatedAtMixin):
    """Structured investment criteria attached to a contact."""

    __tablename__ = "theses"

    contact_id: Mapped[str] = mapped_column(
        ForeignKey("contacts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    sectors: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    stages: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    check_sizes: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    geos: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    personas: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    contact: Mapped["Contact"] = relationship(back_populates="theses")  # noqa: F821
