"""SQLAlchemy metadata registry import for Alembic."""

from app.models import Contact, Conversation, ConversationEntity, MatchSuggestion, Thesis
from app.models.base import Base

__all__ = ["Base", "Contact", "Conversation", "ConversationEntity", "MatchSuggestion", "Thesis"]
