"""Rule-based matching of contacts mentioned by name."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from app.matching.types import ContactProfile, EntityType, MatchCandidate, MatchSource, MentionedEntity

logger = logging.getLogger(__name__)

NAME_MATCH_SCORE = 3
NAME_MATCH_REASON = "Mentioned by name in conversation"


def mentioned_person_names(entities: Iterable[MentionedEntity]) -> list[str]:
    """Return normalized person names from conversation entities."""

    names: list[str] = []
    for entity in entities:
        if entity.kind is not EntityType.PERSON_NAME:
            continue
        normalized = _normalize_name(entity.value)
        if normalized:
            names.append(normalized)
    return names


def name_matches(mentioned_name: str, contact_name: str) -> bool:
    """Check one mentioned name against one contact name.

    Either name containing the other matches. Otherwise a mention with at least
    two tokens matches when its first and last tokens each overlap some token of
    the contact name.
    """

    mentioned = _normalize_name(mentioned_name)
    contact = _normalize_name(contact_name)
    if not mentioned or not contact:
        return False
    if mentioned in contact or contact in mentioned:
        return True

    mentioned_parts = mentioned.split()
    if len(mentioned_parts) < 2:
        return False
    first_name = mentioned_parts[0]
    last_name = mentioned_parts[-1]
    contact_parts = contact.split()
    has_first = any(part in first_name or first_name in part for part in contact_parts)
    has_last = any(part in last_name or last_name in part for part in contact_parts)
    return has_first and has_last


def find_name_matches(
    person_names: Sequence[str],
    contacts: Sequence[ContactProfile],
    similarities: Mapping[str, float] | None = None,
) -> list[MatchCandidate]:
    """Flag every contact mentioned by name, in contact order."""

    if not person_names:
        return []
    similarity_table = similarities or {}
    matches: list[MatchCandidate] = []
    for contact in contacts:
        if not contact.name or not contact.name.strip():
            continue
        if not any(name_matches(mentioned, contact.name) for mentioned in person_names):
            continue
        matches.append(
            MatchCandidate(
                contact_id=contact.id,
                contact_name=contact.name,
                score=NAME_MATCH_SCORE,
                reasons=[NAME_MATCH_REASON],
                justification=(
                    f"{contact.name} was specifically mentioned as a potential match during the conversation."
                ),
                semantic_similarity=similarity_table.get(contact.id),
                source=MatchSource.NAME,
            )
        )

    if matches:
        logger.info(
            "matching.name_matches count=%d contacts=%s",
            len(matches),
            ", ".join(match.contact_name for match in matches),
        )
    return matches


def _normalize_name(value: str | None) -> str:
    return " ".join((value or "").lower().split())
