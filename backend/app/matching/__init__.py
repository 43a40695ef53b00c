"""Contact matching package."""

from app.matching.blender import blend_matches, blend_score
from app.matching.candidate_filter import select_candidates
from app.matching.name_matcher import find_name_matches, mentioned_person_names
from app.matching.scoring import (
    MatchingConfigurationError,
    ScoringOracle,
    ScoringOracleError,
    ScoringTimeoutError,
    build_entity_summary,
)
from app.matching.similarity import EmbeddingParseError, cosine_similarity, parse_embedding

__all__ = [
    "EmbeddingParseError",
    "MatchingConfigurationError",
    "ScoringOracle",
    "ScoringOracleError",
    "ScoringTimeoutError",
    "blend_matches",
    "blend_score",
    "build_entity_summary",
    "cosine_similarity",
    "find_name_matches",
    "mentioned_person_names",
    "parse_embedding",
    "select_candidates",
]
