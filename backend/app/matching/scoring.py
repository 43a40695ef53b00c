"""Generative-model scoring of pre-filtered contacts."""

from __future__ import annotations

import http.client
import json
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from time import perf_counter
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from pydantic import BaseModel, Field, ValidationError, field_validator

from app.config import get_settings
from app.matching.types import ContactProfile, EntityType, MatchCandidate, MatchSource, MentionedEntity

logger = logging.getLogger(__name__)

SCORING_PROMPT_VERSION = "scoring.v1"
_PROMPT_FILES: dict[str, Path] = {
    "scoring.v1": Path(__file__).resolve().parent / "prompts" / "scoring_v1.txt",
}
_CODE_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
MIN_SCORE = 1
MAX_SCORE = 3
_READ_CHUNK_BYTES = 8192


class MatchingConfigurationError(RuntimeError):
    """Raised when required oracle configuration is missing."""


class ScoringOracleError(RuntimeError):
    """Raised when the scoring provider call fails."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ScoringTimeoutError(ScoringOracleError):
    """Raised when the scoring provider does not answer within the timeout."""


class ScoringClient(Protocol):
    """Protocol for pluggable scoring clients."""

    def complete(self, system_prompt: str, user_content: str) -> str | None:
        """Return the assistant text, or None when the reply carried no content."""


@dataclass(slots=True)
class OpenAIChatCompletionsScoringClient:
    """Minimal OpenAI Chat Completions client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 25.0
    temperature: float = 0.5

    def complete(self, system_prompt: str, user_content: str) -> str | None:
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        }
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        deadline = perf_counter() + self.timeout_seconds
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scoring-oracle")
        try:
            future = executor.submit(self._post, req, deadline)
            raw = future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError as exc:
            raise self._timeout_error() from exc
        finally:
            executor.shutdown(wait=False)

        try:
            decoded = json.loads(raw.decode("utf-8"))
            content = decoded["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError):
            logger.error("matching.oracle_invalid_envelope body=%s", raw[:500].decode("utf-8", errors="replace"))
            return None
        return content if isinstance(content, str) else None

    def _post(self, req: urllib_request.Request, deadline: float) -> bytes:
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                return self._read_before_deadline(resp, deadline)
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise ScoringOracleError(
                f"OpenAI API failed: {exc.code} - {detail}",
                status_code=exc.code,
                body=detail,
            ) from exc
        except urllib_error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise self._timeout_error() from exc
            raise ScoringOracleError(f"OpenAI request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise self._timeout_error() from exc
        except (OSError, http.client.HTTPException) as exc:
            raise ScoringOracleError(f"OpenAI connection failed: {exc!r}") from exc

    def _read_before_deadline(self, resp: Any, deadline: float) -> bytes:
        """Read the body in small chunks, failing once the wall-clock deadline passes."""

        chunks: list[bytes] = []
        while True:
            if perf_counter() > deadline:
                raise self._timeout_error()
            chunk = resp.read1(_READ_CHUNK_BYTES)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def _timeout_error(self) -> ScoringTimeoutError:
        return ScoringTimeoutError(f"OpenAI request timed out after {self.timeout_seconds:g}s")


def get_default_scoring_client() -> ScoringClient:
    """Return the configured OpenAI scoring client."""

    settings = get_settings()
    if not settings.openai_api_key:
        raise MatchingConfigurationError("OPENAI_API_KEY not configured")
    return OpenAIChatCompletionsScoringClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.scoring_timeout_seconds,
        temperature=settings.scoring_temperature,
    )


@lru_cache(maxsize=8)
def get_scoring_system_prompt(version: str = SCORING_PROMPT_VERSION) -> str:
    prompt_file = _PROMPT_FILES.get(version)
    if prompt_file is None:
        raise MatchingConfigurationError(f"Scoring prompt version is not registered: {version}")
    try:
        prompt_text = prompt_file.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise MatchingConfigurationError(f"Failed to load scoring prompt file: {prompt_file}") from exc
    if not prompt_text:
        raise MatchingConfigurationError(f"Scoring prompt file is empty: {prompt_file}")
    return prompt_text


def build_entity_summary(entities: Iterable[MentionedEntity]) -> dict[str, list[str]]:
    """Group non-name entity values by their type tag, keeping extraction order."""

    summary: dict[str, list[str]] = {}
    for entity in entities:
        if entity.kind is EntityType.PERSON_NAME:
            continue
        value = (entity.value or "").strip()
        if not value:
            continue
        summary.setdefault(entity.entity_type, []).append(value)
    return summary


def build_scoring_payload(
    entity_summary: Mapping[str, Sequence[str]],
    candidates: Sequence[ContactProfile],
) -> dict[str, Any]:
    return {
        "entities": {entity_type: list(values) for entity_type, values in entity_summary.items()},
        "contacts": [
            {
                "id": contact.id,
                "name": contact.name,
                "company": contact.company,
                "theses": [thesis.to_payload() for thesis in contact.theses],
            }
            for contact in candidates
        ],
    }


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences some model replies wrap around JSON."""

    return _CODE_FENCE_RE.sub("", content).strip()


class _RawOracleMatch(BaseModel):
    contact_id: str
    score: int
    reasons: list[str] = Field(default_factory=list)
    justification: str = ""

    @field_validator("contact_id", mode="before")
    @classmethod
    def _coerce_contact_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("reasons", mode="before")
    @classmethod
    def _coerce_reasons(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("justification", mode="before")
    @classmethod
    def _coerce_justification(cls, value: Any) -> Any:
        return "" if value is None else value


class ScoringOracle:
    """Scores candidate contacts against non-name conversation entities."""

    def __init__(self, client: ScoringClient, *, prompt_version: str = SCORING_PROMPT_VERSION) -> None:
        self._client = client
        self._prompt_version = prompt_version
        self._last_raw_output: str | None = None

    @property
    def prompt_version(self) -> str:
        return self._prompt_version

    @property
    def model_name(self) -> str:
        return str(getattr(self._client, "model", self._client.__class__.__name__))

    @property
    def last_raw_output(self) -> str | None:
        return self._last_raw_output

    def score(
        self,
        candidates: Sequence[ContactProfile],
        entity_summary: Mapping[str, Sequence[str]],
        similarities: Mapping[str, float] | None = None,
    ) -> list[MatchCandidate]:
        """Ask the oracle to score candidates; returns raw 1-3 oracle scores.

        Timeouts and non-success responses propagate. An unparseable reply is
        treated as zero matches.
        """

        self._last_raw_output = None
        if not entity_summary:
            logger.info("matching.oracle_skipped reason=no_entities")
            return []
        if not candidates:
            logger.info("matching.oracle_skipped reason=no_candidates")
            return []

        user_content = json.dumps(build_scoring_payload(entity_summary, candidates))
        started = perf_counter()
        content = self._client.complete(get_scoring_system_prompt(self._prompt_version), user_content)
        logger.info(
            "matching.oracle_timing model=%s candidates=%d oracle_ms=%.2f",
            self.model_name,
            len(candidates),
            (perf_counter() - started) * 1000.0,
        )
        self._last_raw_output = content
        if content is None:
            logger.error("matching.oracle_empty_reply candidates=%d", len(candidates))
            return []
        return parse_oracle_matches(content, candidates, similarities)


def parse_oracle_matches(
    content: str,
    candidates: Sequence[ContactProfile],
    similarities: Mapping[str, float] | None = None,
) -> list[MatchCandidate]:
    """Decode an oracle reply into matches for known candidates."""

    try:
        decoded = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        logger.error("matching.oracle_unparseable error=%s content=%s", exc, content[:500])
        return []
    if not isinstance(decoded, list):
        logger.error("matching.oracle_unparseable error=not_a_list type=%s", type(decoded).__name__)
        return []

    by_id = {contact.id: contact for contact in candidates}
    similarity_table = similarities or {}
    seen: set[str] = set()
    matches: list[MatchCandidate] = []
    for index, row in enumerate(decoded):
        try:
            parsed = _RawOracleMatch.model_validate(row)
        except ValidationError as exc:
            logger.warning("matching.oracle_row_invalid index=%d error=%s", index, exc)
            continue
        contact = by_id.get(parsed.contact_id)
        if contact is None:
            logger.warning("matching.oracle_unknown_contact contact_id=%s", parsed.contact_id)
            continue
        if parsed.contact_id in seen:
            continue
        seen.add(parsed.contact_id)
        score = max(MIN_SCORE, min(MAX_SCORE, parsed.score))
        matches.append(
            MatchCandidate(
                contact_id=contact.id,
                contact_name=contact.name or "Unknown",
                score=score,
                reasons=list(parsed.reasons),
                justification=parsed.justification,
                semantic_similarity=similarity_table.get(contact.id),
                oracle_score=score,
                source=MatchSource.ORACLE,
            )
        )

    logger.info("matching.oracle_parsed rows=%d matches=%d", len(decoded), len(matches))
    return matches
