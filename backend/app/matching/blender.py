"""Blend name matches, oracle scores and embedding similarity."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import replace

from app.matching.types import MatchCandidate

logger = logging.getLogger(__name__)

DEFAULT_ORACLE_WEIGHT = 0.7
DEFAULT_SIMILARITY_WEIGHT = 0.3


def blend_score(
    oracle_score: int,
    similarity: float | None,
    *,
    oracle_weight: float = DEFAULT_ORACLE_WEIGHT,
    similarity_weight: float = DEFAULT_SIMILARITY_WEIGHT,
) -> int:
    """Combine a 1-3 oracle score with similarity into a 1-3 star score.

    The oracle score is normalized to [0, 1] and weighted against the raw
    similarity (0 when absent, negative values kept). The result is mapped
    back with round-half-up and clamped to [1, 3].
    """

    normalized_oracle = (oracle_score - 1) / 2
    combined = oracle_weight * normalized_oracle + similarity_weight * (similarity or 0.0)
    mapped = math.floor(1 + combined * 2 + 0.5)
    return max(1, min(3, mapped))


def blend_matches(
    name_matches: Sequence[MatchCandidate],
    oracle_matches: Sequence[MatchCandidate],
    *,
    oracle_weight: float = DEFAULT_ORACLE_WEIGHT,
    similarity_weight: float = DEFAULT_SIMILARITY_WEIGHT,
) -> list[MatchCandidate]:
    """Return name matches followed by blended oracle matches, one per contact."""

    blended: list[MatchCandidate] = []
    seen: set[str] = set()
    for match in name_matches:
        if match.contact_id in seen:
            continue
        seen.add(match.contact_id)
        blended.append(replace(match, score=3))

    dropped = 0
    for match in oracle_matches:
        if match.contact_id in seen:
            dropped += 1
            continue
        seen.add(match.contact_id)
        raw_score = match.oracle_score if match.oracle_score is not None else match.score
        blended.append(
            replace(
                match,
                score=blend_score(
                    raw_score,
                    match.semantic_similarity,
                    oracle_weight=oracle_weight,
                    similarity_weight=similarity_weight,
                ),
                oracle_score=raw_score,
            )
        )

    logger.info(
        "matching.blend name=%d oracle=%d duplicates_dropped=%d total=%d",
        len(name_matches),
        len(oracle_matches),
        dropped,
        len(blended),
    )
    return blended
