"""Match generation orchestration and persistence services."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.matching.blender import blend_matches
from app.matching.candidate_filter import select_candidates
from app.matching.name_matcher import find_name_matches, mentioned_person_names
from app.matching.scoring import ScoringClient, ScoringOracle, build_entity_summary, get_default_scoring_client
from app.matching.types import MatchCandidate, MatchStatus
from app.models.contact import Contact
from app.models.match_suggestion import MatchSuggestion
from app.schemas.matching import GenerateMatchesResult, MatchSuggestionRead
from app.services.conversation_embedding import get_or_create_conversation_embedding
from app.services.conversations import (
    get_conversation,
    list_conversation_entities,
    list_profile_contacts,
    to_contact_profile,
    to_mentioned_entity,
)
from app.services.embeddings import EmbeddingClient

logger = logging.getLogger(__name__)


class MatchPersistenceError(RuntimeError):
    """Raised when a batch of match suggestions cannot be stored."""


def generate_matches(
    db: Session,
    conversation_id: str,
    *,
    profile_id: str | None = None,
    embedding_client: EmbeddingClient | None = None,
    scoring_client: ScoringClient | None = None,
) -> GenerateMatchesResult:
    """Run the full matching pipeline for one conversation and store the results.

    Ownership is checked only when `profile_id` is given; otherwise the caller is
    expected to have verified it.
    """

    settings = get_settings()
    total_started = perf_counter()
    try:
        conversation = get_conversation(db, conversation_id, profile_id=profile_id)

        started = perf_counter()
        embedding_result = get_or_create_conversation_embedding(db, conversation_id, client=embedding_client)
        embedding_ms = (perf_counter() - started) * 1000.0
        if embedding_result.embedding is None:
            logger.warning(
                "matching.no_conversation_embedding conversation_id=%s; continuing without pre-filtering",
                conversation_id,
            )

        entities = [to_mentioned_entity(entity) for entity in list_conversation_entities(db, conversation_id)]
        if not entities:
            logger.info("matching.no_entities conversation_id=%s", conversation_id)
            return GenerateMatchesResult(matches=[])

        contacts = [to_contact_profile(contact) for contact in list_profile_contacts(db, conversation.owned_by_profile)]
        if not contacts:
            logger.info("matching.no_contacts conversation_id=%s", conversation_id)
            return GenerateMatchesResult(matches=[])

        started = perf_counter()
        selection = select_candidates(
            contacts,
            embedding_result.embedding,
            top_n=settings.candidate_top_n,
            no_embedding_cap=settings.no_embedding_cap,
        )
        prefilter_ms = (perf_counter() - started) * 1000.0

        name_matches = find_name_matches(mentioned_person_names(entities), contacts, selection.similarities)

        entity_summary = build_entity_summary(entities)
        started = perf_counter()
        oracle_matches: list[MatchCandidate] = []
        if entity_summary:
            oracle = ScoringOracle(scoring_client or get_default_scoring_client())
            oracle_matches = oracle.score(
                selection.candidates[: settings.oracle_contact_cap],
                entity_summary,
                selection.similarities,
            )
        oracle_ms = (perf_counter() - started) * 1000.0

        blended = blend_matches(
            name_matches,
            oracle_matches,
            oracle_weight=settings.oracle_weight,
            similarity_weight=settings.similarity_weight,
        )

        started = perf_counter()
        persisted = persist_matches(db, conversation_id, blended)
        persist_ms = (perf_counter() - started) * 1000.0

        logger.info(
            (
                "matching.timing conversation_id=%s contacts=%d candidates=%d "
                "embedding_cached=%s embedding_ms=%.2f prefilter_ms=%.2f oracle_ms=%.2f "
                "persist_ms=%.2f total_ms=%.2f name_matches=%d oracle_matches=%d persisted=%d"
            ),
            conversation_id,
            len(contacts),
            len(selection.candidates),
            embedding_result.cached,
            embedding_ms,
            prefilter_ms,
            oracle_ms,
            persist_ms,
            (perf_counter() - total_started) * 1000.0,
            len(name_matches),
            len(oracle_matches),
            len(persisted),
        )
        return GenerateMatchesResult(matches=persisted)
    except Exception:
        logger.exception(
            "matching.failed conversation_id=%s elapsed_ms=%.2f",
            conversation_id,
            (perf_counter() - total_started) * 1000.0,
        )
        raise


def persist_matches(
    db: Session,
    conversation_id: str,
    matches: Sequence[MatchCandidate],
) -> list[MatchSuggestionRead]:
    """Insert all matches in one transaction and return them with contact names."""

    if not matches:
        return []

    rows: list[MatchSuggestion] = []
    for match in matches:
        if match.score not in (1, 2, 3):
            raise MatchPersistenceError(f"Invalid score {match.score!r} for contact {match.contact_id}")
        rows.append(
            MatchSuggestion(
                conversation_id=conversation_id,
                contact_id=match.contact_id,
                score=int(match.score),
                semantic_similarity=match.semantic_similarity,
                reasons=list(match.reasons),
                justification=match.justification,
                status=MatchStatus.PENDING.value,
            )
        )

    try:
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise MatchPersistenceError(f"Failed to insert match suggestions: {exc}") from exc

    return _read_suggestions(db, [row.id for row in rows])


def list_match_suggestions(db: Session, conversation_id: str) -> list[MatchSuggestionRead]:
    """List stored suggestions for a conversation in insertion order."""

    stmt = (
        select(MatchSuggestion, Contact.name)
        .join(Contact, Contact.id == MatchSuggestion.contact_id)
        .where(MatchSuggestion.conversation_id == conversation_id)
        .order_by(MatchSuggestion.id.asc())
    )
    return [_to_read(suggestion, contact_name) for suggestion, contact_name in db.execute(stmt).all()]


def _read_suggestions(db: Session, suggestion_ids: list[int]) -> list[MatchSuggestionRead]:
    stmt = (
        select(MatchSuggestion, Contact.name)
        .outerjoin(Contact, Contact.id == MatchSuggestion.contact_id)
        .where(MatchSuggestion.id.in_(suggestion_ids))
        .order_by(MatchSuggestion.id.asc())
    )
    return [_to_read(suggestion, contact_name) for suggestion, contact_name in db.execute(stmt).all()]


def _to_read(suggestion: MatchSuggestion, contact_name: str | None) -> MatchSuggestionRead:
    return MatchSuggestionRead(
        **MatchSuggestionRead.model_validate(suggestion).model_dump(exclude={"contact_name"}),
        contact_name=contact_name,
    )
