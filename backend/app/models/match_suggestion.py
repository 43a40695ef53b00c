"""Match suggestion ORM model."""

from sqlalchemy import JSON, CheckConstraint, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, IdMixin


class MatchSuggestion(Base, IdMixin, CreatedAtMixin):
    """Scored introduction suggestion produced by a matching run."""

    __tablename__ = "match_suggestions"
    __table_args__ = (
        CheckConstraint("score BETWEEN 1 AND 3", name="ck_match_suggestions_score_range"),
        CheckConstraint(
            "status IN ('pending', 'promised', 'maybe', 'dismissed')",
            name="ck_match_suggestions_status",
        ),
    )

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    contact_id: Mapped[str] = mapped_column(
        ForeignKey("contacts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    semantic_similarity: Mapped[float | None] = mapped_column(Float, nullable=True)
    reasons: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    justification: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)

    contact: Mapped["Contact"] = relationship()  # noqa: F821
