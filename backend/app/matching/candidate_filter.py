"""Semantic pre-filtering of contacts before oracle scoring."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app.matching.similarity import EmbeddingParseError, cosine_similarity, parse_embedding
from app.matching.types import CandidateSelection, ContactProfile

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 50
DEFAULT_NO_EMBEDDING_CAP = 50


def contact_comparison_vector(contact: ContactProfile) -> list[float] | None:
    """Return the thesis embedding, else the bio embedding, else None."""

    for field_name in ("thesis_embedding", "bio_embedding"):
        raw = getattr(contact, field_name)
        try:
            vector = parse_embedding(raw)
        except EmbeddingParseError as exc:
            logger.warning(
                "matching.contact_embedding_invalid contact_id=%s field=%s error=%s",
                contact.id,
                field_name,
                exc,
            )
            continue
        if vector:
            return vector
    return None


def select_candidates(
    contacts: Sequence[ContactProfile],
    conversation_embedding: Sequence[float] | None,
    *,
    top_n: int = DEFAULT_TOP_N,
    no_embedding_cap: int = DEFAULT_NO_EMBEDDING_CAP,
) -> CandidateSelection:
    """Rank contacts by similarity and pick a bounded candidate set.

    Without a conversation embedding every contact is a candidate. Otherwise the
    `top_n` most similar contacts are kept and contacts with no computable
    similarity are appended, capped at `no_embedding_cap`.
    """

    if not conversation_embedding:
        logger.info("matching.prefilter_skipped reason=no_conversation_embedding contacts=%d", len(contacts))
        return CandidateSelection(candidates=list(contacts), prefiltered=False)

    scored: list[tuple[ContactProfile, float]] = []
    unembedded: list[ContactProfile] = []
    for contact in contacts:
        vector = contact_comparison_vector(contact)
        similarity = cosine_similarity(conversation_embedding, vector) if vector else None
        if similarity is None:
            unembedded.append(contact)
        else:
            scored.append((contact, similarity))

    # sorted() is stable, so equal similarities keep input order.
    scored = sorted(scored, key=lambda item: item[1], reverse=True)
    top = [contact for contact, _ in scored[: max(0, top_n)]]
    extra = unembedded[: max(0, no_embedding_cap)]

    if scored:
        logger.debug(
            "matching.prefilter_top similarities=%s",
            ", ".join(f"{contact.name}: {similarity:.3f}" for contact, similarity in scored[:5]),
        )
    logger.info(
        "matching.prefilter contacts=%d scored=%d kept_ranked=%d unembedded=%d kept_unembedded=%d",
        len(contacts),
        len(scored),
        len(top),
        len(unembedded),
        len(extra),
    )
    return CandidateSelection(
        candidates=top + extra,
        similarities={contact.id: similarity for contact, similarity in scored},
        ranked_count=len(top),
        unembedded_count=len(extra),
        prefiltered=True,
    )
