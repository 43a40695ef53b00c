"""ORM models package exports."""

from app.models.contact import Contact
from app.models.conversation import Conversation
from app.models.conversation_entity import ConversationEntity
from app.models.match_suggestion import MatchSuggestion
from app.models.thesis import Thesis

__all__ = [
    "Contact",
    "Conversation",
    "ConversationEntity",
    "MatchSuggestion",
    "Thesis",
]
