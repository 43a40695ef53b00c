"""Integration tests for contact thesis/bio embedding generation."""

from __future__ import annotations

import json
import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.contact import Contact
from app.models.conversation import Conversation
from app.models.conversation_entity import ConversationEntity
from app.models.match_suggestion import MatchSuggestion
from app.models.thesis import Thesis
from app.services.contact_embeddings import (
    ContactNotFoundError,
    build_bio_embedding_text,
    build_thesis_embedding_text,
    embed_contact,
    embed_contacts_batch,
)
from app.services.embeddings import EmbeddingError


class _ScriptedEmbeddingClient:
    def __init__(self, failing_texts: set[str] | None = None) -> None:
        self.failing_texts = failing_texts or set()
        self.calls: list[str] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        if any(text in self.failing_texts for text in texts):
            raise EmbeddingError("provider rejected input")
        return [[float(len(text)), 1.0] for text in texts]


class ContactEmbeddingTests(unittest.TestCase):
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

    def tearDown(self) -> None:
        self.db.close()

    def test_thesis_text_combines_notes_and_criteria(self) -> None:
        contact = Contact(id="c-1", owned_by_profile="p", name="Marcus Lee", investor_notes=" Angel in NYC. ")
        contact.theses.append(
            Thesis(sectors=["fintech", "B2B SaaS"], stages=["seed"], check_sizes=[], geos=["NYC"], personas=[], notes="Leads rounds.")
        )

        text = build_thesis_embedding_text(contact)

        self.assertEqual(
            text,
            "Angel in NYC. sectors: fintech, B2B SaaS stages: seed geographies: NYC Leads rounds.",
        )
        self.assertEqual(build_bio_embedding_text(Contact(id="c-2", owned_by_profile="p", name="x")), "")

    def test_embed_contact_fills_missing_fields_only(self) -> None:
        self._add_contact("c-1", bio="Fintech partner.", investor_notes="Seed checks.", bio_embedding=[0.1, 0.2])
        client = _ScriptedEmbeddingClient()

        result = embed_contact(self.db, "c-1", client=client)

        self.assertEqual(result.generated, ["thesis"])
        self.assertTrue(result.has_thesis_embedding)
        self.assertTrue(result.has_bio_embedding)
        self.assertEqual(client.calls, ["Seed checks."])
        stored = self.db.get(Contact, "c-1")
        self.assertEqual(json.loads(stored.thesis_embedding), [12.0, 1.0])
        self.assertEqual(json.loads(stored.bio_embedding), [0.1, 0.2])

    def test_embed_contact_force_regenerate_rewrites_both(self) -> None:
        self._add_contact("c-1", bio="Fintech partner.", investor_notes="Seed checks.", bio_embedding=[0.1, 0.2])
        client = _ScriptedEmbeddingClient()

        result = embed_contact(self.db, "c-1", client=client, force_regenerate=True)

        self.assertEqual(result.generated, ["thesis", "bio"])
        self.assertEqual(json.loads(self.db.get(Contact, "c-1").bio_embedding), [16.0, 1.0])

    def test_embed_contact_without_text_generates_nothing(self) -> None:
        self._add_contact("c-1")
        client = _ScriptedEmbeddingClient()

        result = embed_contact(self.db, "c-1", client=client)

        self.assertEqual(result.generated, [])
        self.assertFalse(result.has_thesis_embedding)
        self.assertEqual(client.calls, [])

    def test_embed_contact_hides_other_profiles(self) -> None:
        self._add_contact("c-1", bio="Fintech partner.", owner="profile-2")

        with self.assertRaises(ContactNotFoundError):
            embed_contact(self.db, "c-1", client=_ScriptedEmbeddingClient(), profile_id="profile-1")
        with self.assertRaises(ContactNotFoundError):
            embed_contact(self.db, "missing", client=_ScriptedEmbeddingClient())

    def test_batch_embeds_only_contacts_needing_it_and_collects_errors(self) -> None:
        self._add_contact("c-1", bio="Fintech partner.")
        self._add_contact("c-2", bio="broken bio")
        self._add_contact("c-3", bio="Done.", bio_embedding=[1.0, 0.0])
        self._add_contact("c-4")
        self._add_contact("c-5", bio="Other network.", owner="profile-2")
        client = _ScriptedEmbeddingClient(failing_texts={"broken bio"})

        result = embed_contacts_batch(self.db, client=client, profile_id="profile-1", limit=10)

        self.assertEqual(result.processed, 1)
        self.assertEqual(result.total, 2)
        self.assertFalse(result.has_more)
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("c-2:"))
        self.assertIsNotNone(self.db.get(Contact, "c-1").bio_embedding)
        self.assertIsNone(self.db.get(Contact, "c-5").bio_embedding)

    def test_batch_reports_more_work_when_limited(self) -> None:
        for index in range(3):
            self._add_contact(f"c-{index}", bio=f"Bio {index}")

        result = embed_contacts_batch(self.db, client=_ScriptedEmbeddingClient(), limit=2)

        self.assertEqual(result.processed, 2)
        self.assertEqual(result.total, 3)
        self.assertTrue(result.has_more)

        follow_up = embed_contacts_batch(self.db, client=_ScriptedEmbeddingClient(), limit=2)
        self.assertEqual(follow_up.processed, 1)
        self.assertEqual(follow_up.total, 1)
        self.assertFalse(follow_up.has_more)

    def test_batch_treats_thesis_rows_as_embeddable_text(self) -> None:
        contact = self._add_contact("c-1")
        contact.theses.append(Thesis(sectors=["climate"], stages=[], check_sizes=[], geos=[], personas=[]))
        self.db.commit()
        client = _ScriptedEmbeddingClient()

        result = embed_contacts_batch(self.db, client=client)

        self.assertEqual(result.processed, 1)
        self.assertEqual(client.calls, ["sectors: climate"])

    def test_batch_skips_contacts_whose_theses_render_no_text(self) -> None:
        for index in range(3):
            contact = self._add_contact(f"a-{index}")
            contact.theses.append(Thesis(sectors=[], stages=[" "], check_sizes=[], geos=[], personas=[], notes=""))
        self._add_contact("z-bio", bio="Operator angel in climate.")
        self.db.commit()
        client = _ScriptedEmbeddingClient()

        result = embed_contacts_batch(self.db, client=client, limit=3)

        self.assertEqual(result.processed, 1)
        self.assertEqual(result.total, 1)
        self.assertFalse(result.has_more)
        self.assertEqual(client.calls, ["Operator angel in climate."])
        self.assertIsNotNone(self.db.get(Contact, "z-bio").bio_embedding)

    def test_batch_pages_past_contacts_that_keep_failing(self) -> None:
        self._add_contact("c-0", bio="broken bio")
        self._add_contact("c-1", bio="Fintech partner.")
        client = _ScriptedEmbeddingClient(failing_texts={"broken bio"})

        first = embed_contacts_batch(self.db, client=client, limit=1)
        self.assertEqual((first.processed, first.total, first.has_more), (0, 2, True))
        self.assertEqual(first.failed_contact_ids, ["c-0"])

        second = embed_contacts_batch(self.db, client=client, limit=1, exclude_ids=set(first.failed_contact_ids))
        self.assertEqual((second.processed, second.total, second.has_more), (1, 1, False))
        self.assertEqual(second.failed_contact_ids, [])
        self.assertIsNotNone(self.db.get(Contact, "c-1").bio_embedding)
        self.assertIsNone(self.db.get(Contact, "c-0").bio_embedding)

    def _add_contact(
        self,
        contact_id: str,
        *,
        owner: str = "profile-1",
        bio: str | None = None,
        investor_notes: str | None = None,
        bio_embedding: list[float] | None = None,
    ) -> Contact:
        contact = Contact(
            id=contact_id,
            owned_by_profile=owner,
            name=f"Contact {contact_id}",
            bio=bio,
            investor_notes=investor_notes,
            bio_embedding=json.dumps(bio_embedding) if bio_embedding else None,
        )
        self.db.add(contact)
        self.db.commit()
        return contact

    def _reset_tables(self) -> None:
        self.db.execute(delete(MatchSuggestion))
        self.db.execute(delete(Thesis))
        self.db.execute(delete(Contact))
        self.db.execute(delete(ConversationEntity))
        self.db.execute(delete(Conversation))
        self.db.commit()


if __name__ == "__main__":
    unittest.main()
