"""Embedding provider clients."""

from __future__ import annotations

import http.client
import json
import math
from dataclasses import dataclass
from typing import Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from app.config import get_settings
from app.matching.scoring import MatchingConfigurationError


class EmbeddingError(RuntimeError):
    """Raised when embedding generation fails."""


class EmbeddingClient(Protocol):
    """Protocol for pluggable embedding clients."""

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Return vectors for each input text."""


@dataclass(slots=True)
class OpenAIEmbeddingsClient:
    """Minimal OpenAI embeddings client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: int = 60

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        payload = {
            "model": self.model,
            "input": texts,
        }
        url = f"{self.base_url.rstrip('/')}/embeddings"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise EmbeddingError(f"OpenAI embeddings HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise EmbeddingError(f"OpenAI embeddings request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise EmbeddingError("OpenAI embeddings request timed out") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise EmbeddingError(f"OpenAI embeddings connection failed: {exc!r}") from exc

        try:
            decoded = json.loads(raw.decode("utf-8"))
            rows = sorted(decoded["data"], key=lambda row: int(row.get("index", 0)))
            return [list(map(float, row["embedding"])) for row in rows]
        except (KeyError, TypeError, ValueError, json.JSONDecodeError) as exc:
            raise EmbeddingError("OpenAI embeddings response was invalid") from exc


def get_default_embedding_client() -> EmbeddingClient:
    """Return the configured OpenAI embeddings client."""

    settings = get_settings()
    if not settings.openai_api_key:
        raise MatchingConfigurationError("OPENAI_API_KEY not configured")
    return OpenAIEmbeddingsClient(
        api_key=settings.openai_api_key,
        model=settings.openai_embedding_model,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.openai_timeout_seconds,
    )


def embed_text(text: str, *, client: EmbeddingClient, max_chars: int | None = None) -> list[float] | None:
    """Embed one text truncated to `max_chars`; None for blank input."""

    if not text or not text.strip():
        return None
    limit = get_settings().embedding_max_chars if max_chars is None else max_chars
    vectors = client.embed_texts([text[:limit]])
    if len(vectors) != 1:
        raise EmbeddingError("Embedding client returned wrong vector count")
    vector = vectors[0]
    if not vector or not all(math.isfinite(value) for value in vector):
        raise EmbeddingError("Embedding client returned an empty or non-finite vector")
    return vector
