"""Integration tests for the cached conversation entity embedding."""

from __future__ import annotations

import http.client
import json
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.models.base import Base
from app.models.contact import Contact
from app.models.conversation import Conversation
from app.models.conversation_entity import ConversationEntity
from app.models.match_suggestion import MatchSuggestion
from app.models.thesis import Thesis
from app.services.conversation_embedding import get_or_create_conversation_embedding
from app.services.conversations import ConversationAccessError, ConversationNotFoundError
from app.services.embeddings import EmbeddingError, OpenAIEmbeddingsClient


class _RecordingEmbeddingClient:
    def __init__(self, vector: list[float] | None = None, error: Exception | None = None) -> None:
        self.vector = vector or [0.6, 0.8]
        self.error = error
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [list(self.vector) for _ in texts]


class ConversationEmbeddingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self._reset_tables()
        self.db.add(Conversation(id="conv-1", owned_by_profile="profile-1"))
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def _add_entities(self, *pairs: tuple[str, str]) -> None:
        for entity_type, value in pairs:
            self.db.add(ConversationEntity(conversation_id="conv-1", entity_type=entity_type, value=value))
        self.db.commit()

    def test_generates_and_caches_embedding_from_entity_text(self) -> None:
        self._add_entities(("sector", "fintech"), ("stage", "seed"), ("person_name", "Sarah Johnson"))
        client = _RecordingEmbeddingClient([0.6, 0.8])

        result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertEqual(client.calls, [["sector: fintech stage: seed person_name: Sarah Johnson"]])
        self.assertEqual(result.embedding, [0.6, 0.8])
        self.assertFalse(result.cached)
        self.assertEqual(result.entity_count, 3)
        self.db.expire_all()
        self.assertEqual(json.loads(self.db.get(Conversation, "conv-1").entity_embedding), [0.6, 0.8])

    def test_cached_embedding_is_returned_without_calling_the_client(self) -> None:
        conversation = self.db.get(Conversation, "conv-1")
        conversation.entity_embedding = json.dumps([1.0, 0.0])
        self.db.commit()
        self._add_entities(("sector", "fintech"))
        client = _RecordingEmbeddingClient()

        result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertTrue(result.cached)
        self.assertEqual(result.embedding, [1.0, 0.0])
        self.assertEqual(client.calls, [])

    def test_force_regenerate_bypasses_cache(self) -> None:
        conversation = self.db.get(Conversation, "conv-1")
        conversation.entity_embedding = json.dumps([1.0, 0.0])
        self.db.commit()
        self._add_entities(("sector", "fintech"))
        client = _RecordingEmbeddingClient([0.0, 1.0])

        result = get_or_create_conversation_embedding(self.db, "conv-1", client=client, force_regenerate=True)

        self.assertFalse(result.cached)
        self.assertEqual(result.embedding, [0.0, 1.0])
        self.assertEqual(len(client.calls), 1)

    def test_unparseable_cache_is_regenerated(self) -> None:
        conversation = self.db.get(Conversation, "conv-1")
        conversation.entity_embedding = "not-json"
        self.db.commit()
        self._add_entities(("stage", "seed"))
        client = _RecordingEmbeddingClient([0.6, 0.8])

        with self.assertLogs("app.services.conversation_embedding", level="WARNING"):
            result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertEqual(result.embedding, [0.6, 0.8])
        self.assertEqual(len(client.calls), 1)

    def test_no_entities_returns_null_embedding_without_a_call(self) -> None:
        client = _RecordingEmbeddingClient()
        result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertIsNone(result.embedding)
        self.assertFalse(result.cached)
        self.assertEqual(result.message, "No entities found for this conversation")
        self.assertEqual(client.calls, [])

    def test_entity_text_is_truncated(self) -> None:
        self._add_entities(("context", "x" * 9000))
        client = _RecordingEmbeddingClient()

        get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertEqual(len(client.calls[0][0]), 8000)
        self.assertTrue(client.calls[0][0].startswith("context: x"))

    def test_provider_failure_returns_null_embedding_and_skips_cache(self) -> None:
        self._add_entities(("sector", "fintech"))
        client = _RecordingEmbeddingClient(error=EmbeddingError("OpenAI embeddings HTTP 500: boom"))

        with self.assertLogs("app.services.conversation_embedding", level="WARNING"):
            result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertIsNone(result.embedding)
        self.db.expire_all()
        self.assertIsNone(self.db.get(Conversation, "conv-1").entity_embedding)

    @patch("urllib.request.urlopen")
    def test_dropped_connection_returns_null_embedding(self, urlopen) -> None:
        self._add_entities(("sector", "fintech"))
        urlopen.side_effect = http.client.RemoteDisconnected("Remote end closed connection without response")
        client = OpenAIEmbeddingsClient(api_key="test-key", model="text-embedding-test")

        with self.assertLogs("app.services.conversation_embedding", level="WARNING"):
            result = get_or_create_conversation_embedding(self.db, "conv-1", client=client)

        self.assertIsNone(result.embedding)
        self.assertFalse(result.cached)

    def test_missing_api_key_is_a_soft_failure(self) -> None:
        self._add_entities(("sector", "fintech"))
        with patch("app.services.embeddings.get_settings", return_value=Settings(openai_api_key=None)):
            with self.assertLogs("app.services.conversation_embedding", level="WARNING"):
                result = get_or_create_conversation_embedding(self.db, "conv-1")
        self.assertIsNone(result.embedding)

    def test_missing_and_foreign_conversations_raise(self) -> None:
        with self.assertRaises(ConversationNotFoundError):
            get_or_create_conversation_embedding(self.db, "missing", client=_RecordingEmbeddingClient())
        with self.assertRaises(ConversationAccessError):
            get_or_create_conversation_embedding(
                self.db,
                "conv-1",
                client=_RecordingEmbeddingClient(),
                profile_id="someone-else",
            )

    def _reset_tables(self) -> None:
        self.db.execute(delete(MatchSuggestion))
        self.db.execute(delete(Thesis))
        self.db.execute(delete(Contact))
        self.db.execute(delete(ConversationEntity))
        self.db.execute(delete(Conversation))
        self.db.commit()


if __name__ == "__main__":
    unittest.main()
