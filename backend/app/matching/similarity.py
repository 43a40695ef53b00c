"""Vector helpers for semantic pre-filtering."""

from __future__ import annotations

import json
import math
from collections.abc import Sequence
from typing import Any


class EmbeddingParseError(ValueError):
    """Raised when a stored embedding cannot be decoded into a float vector."""


def cosine_similarity(left: Sequence[float] | None, right: Sequence[float] | None) -> float | None:
    """Return cosine similarity in [-1, 1], or None when it is undefined."""

    if not left or not right or len(left) != len(right):
        return None
    left_norm = _vector_norm(left)
    right_norm = _vector_norm(right)
    if left_norm == 0.0 or right_norm == 0.0:
        return None
    dot = math.fsum(l * r for l, r in zip(left, right, strict=True))
    cosine = dot / (left_norm * right_norm)
    return max(-1.0, min(1.0, cosine))


def parse_embedding(value: Any) -> list[float] | None:
    """Decode a stored embedding (JSON text or list) into floats.

    Returns None when nothing is stored. Raises EmbeddingParseError when a value
    is stored but is not a list of numbers.
    """

    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise EmbeddingParseError("Stored embedding is not valid JSON") from exc
    if not isinstance(value, list):
        raise EmbeddingParseError(f"Stored embedding is a {type(value).__name__}, not a list")
    parsed: list[float] = []
    for item in value:
        if isinstance(item, bool):
            raise EmbeddingParseError("Stored embedding contains a boolean")
        try:
            number = float(item)
        except (TypeError, ValueError) as exc:
            raise EmbeddingParseError("Stored embedding contains a non-numeric value") from exc
        if not math.isfinite(number):
            raise EmbeddingParseError("Stored embedding contains a non-finite value")
        parsed.append(number)
    return parsed


def serialize_embedding(vector: Sequence[float]) -> str:
    """Serialize a vector for a text column."""

    return json.dumps([float(value) for value in vector])


def _vector_norm(vector: Sequence[float]) -> float:
    return math.sqrt(math.fsum(value * value for value in vector))
