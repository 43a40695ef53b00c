"""Cached aggregate embedding of a conversation's extracted entities."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from time import perf_counter

from sqlalchemy.orm import Session

from app.config import get_settings
from app.matching.scoring import MatchingConfigurationError
from app.matching.similarity import EmbeddingParseError, parse_embedding, serialize_embedding
from app.models.conversation_entity import ConversationEntity
from app.schemas.matching import ConversationEmbeddingResult
from app.services.conversations import get_conversation, list_conversation_entities
from app.services.embeddings import EmbeddingClient, EmbeddingError, embed_text, get_default_embedding_client

logger = logging.getLogger(__name__)


def build_entity_embedding_text(entities: Iterable[ConversationEntity]) -> str:
    """Render entities as `type: value` pairs in extraction order."""

    return " ".join(f"{entity.entity_type}: {entity.value}" for entity in entities)


def get_or_create_conversation_embedding(
    db: Session,
    conversation_id: str,
    *,
    client: EmbeddingClient | None = None,
    force_regenerate: bool = False,
    profile_id: str | None = None,
) -> ConversationEmbeddingResult:
    """Return the cached conversation embedding or generate and cache it.

    Provider failures yield a null embedding instead of raising, so callers can
    continue without semantic pre-filtering.
    """

    conversation = get_conversation(db, conversation_id, profile_id=profile_id)

    if not force_regenerate and conversation.entity_embedding:
        try:
            cached = parse_embedding(conversation.entity_embedding)
        except EmbeddingParseError as exc:
            logger.warning(
                "matching.embedding_cache_invalid conversation_id=%s error=%s; regenerating",
                conversation_id,
                exc,
            )
        else:
            if cached:
                return ConversationEmbeddingResult(
                    conversation_id=conversation_id,
                    embedding=cached,
                    cached=True,
                )

    entities = list_conversation_entities(db, conversation_id)
    if not entities:
        return ConversationEmbeddingResult(
            conversation_id=conversation_id,
            message="No entities found for this conversation",
        )

    entity_text = build_entity_embedding_text(entities)
    settings = get_settings()
    started = perf_counter()
    try:
        active_client = client or get_default_embedding_client()
        embedding = embed_text(entity_text, client=active_client, max_chars=settings.embedding_max_chars)
    except (EmbeddingError, MatchingConfigurationError) as exc:
        logger.warning(
            "matching.embedding_failed conversation_id=%s entities=%d error=%s",
            conversation_id,
            len(entities),
            exc,
        )
        return ConversationEmbeddingResult(
            conversation_id=conversation_id,
            entity_count=len(entities),
            message="Failed to generate embedding",
        )

    if embedding is None:
        return ConversationEmbeddingResult(
            conversation_id=conversation_id,
            entity_count=len(entities),
            message="No entity text to embed",
        )

    conversation.entity_embedding = serialize_embedding(embedding)
    db.commit()
    logger.info(
        "matching.embedding_cached conversation_id=%s entities=%d chars=%d embed_ms=%.2f",
        conversation_id,
        len(entities),
        len(entity_text),
        (perf_counter() - started) * 1000.0,
    )
    return ConversationEmbeddingResult(
        conversation_id=conversation_id,
        embedding=embedding,
        cached=False,
        entity_count=len(entities),
    )
