"""Typed matching inputs and outputs independent of persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntityType(str, Enum):
    """Known conversation entity tags."""

    PERSON_NAME = "person_name"
    SECTOR = "sector"
    STAGE = "stage"
    CHECK_SIZE = "check_size"
    GEOGRAPHY = "geography"
    PERSONA_TYPE = "persona_type"
    COMPANY = "company"
    OTHER = "other"

    @classmethod
    def from_tag(cls, tag: str | None) -> EntityType:
        """Map a stored tag onto a known type, falling back to OTHER."""

        normalized = (tag or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.OTHER


class MatchStatus(str, Enum):
    """Workflow status of a persisted suggestion."""

    PENDING = "pending"
    PROMISED = "promised"
    MAYBE = "maybe"
    DISMISSED = "dismissed"


class MatchSource(str, Enum):
    """Signal that produced a match."""

    NAME = "name"
    ORACLE = "oracle"


@dataclass(slots=True)
class MentionedEntity:
    """Entity extracted from a conversation, as seen by the matcher."""

    entity_type: str
    value: str

    @property
    def kind(self) -> EntityType:
        return EntityType.from_tag(self.entity_type)


@dataclass(slots=True)
class ThesisCriteria:
    """Structured investment criteria of a contact."""

    sectors: list[str] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)
    check_sizes: list[str] = field(default_factory=list)
    geos: list[str] = field(default_factory=list)
    personas: list[str] = field(default_factory=list)
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sectors": list(self.sectors),
            "stages": list(self.stages),
            "check_sizes": list(self.check_sizes),
            "geos": list(self.geos),
            "personas": list(self.personas),
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


@dataclass(slots=True)
class ContactProfile:
    """Contact fields the matching pipeline reads."""

    id: str
    name: str
    company: str | None = None
    thesis_embedding: str | list[float] | None = None
    bio_embedding: str | list[float] | None = None
    theses: list[ThesisCriteria] = field(default_factory=list)


@dataclass(slots=True)
class CandidateSelection:
    """Contacts chosen for oracle scoring plus the similarity table."""

    candidates: list[ContactProfile] = field(default_factory=list)
    similarities: dict[str, float] = field(default_factory=dict)
    ranked_count: int = 0
    unembedded_count: int = 0
    prefiltered: bool = False


@dataclass(slots=True)
class MatchCandidate:
    """Scored match before persistence."""

    contact_id: str
    contact_name: str
    score: int
    reasons: list[str] = field(default_factory=list)
    justification: str = ""
    semantic_similarity: float | None = None
    oracle_score: int | None = None
    source: MatchSource = MatchSource.ORACLE
