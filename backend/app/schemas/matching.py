"""Matching and embedding endpoint schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.matching.types import MatchStatus


class MatchSuggestionRead(BaseModel):
    """Persisted match suggestion with the contact display name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: str
    contact_id: str
    contact_name: str | None = None
    score: int = Field(ge=1, le=3)
    semantic_similarity: float | None = Field(default=None, ge=-1.0, le=1.0)
    reasons: list[str]
    justification: str
    status: MatchStatus
    created_at: datetime


class GenerateMatchesResult(BaseModel):
    """Result of one matching run."""

    matches: list[MatchSuggestionRead] = Field(default_factory=list)


class ConversationEmbeddingResult(BaseModel):
    """Aggregate conversation embedding and whether it came from the cache."""

    conversation_id: str
    embedding: list[float] | None = None
    cached: bool = False
    entity_count: int = 0
    message: str | None = None


class ContactEmbeddingResult(BaseModel):
    """Embedding generation outcome for one contact."""

    contact_id: str
    has_thesis_embedding: bool
    has_bio_embedding: bool
    generated: list[str] = Field(default_factory=list)


class ContactEmbeddingBatchResult(BaseModel):
    """Embedding generation summary for one batch of contacts."""

    processed: int
    total: int
    errors: list[str] = Field(default_factory=list)
    failed_contact_ids: list[str] = Field(default_factory=list)
    has_more: bool = False
