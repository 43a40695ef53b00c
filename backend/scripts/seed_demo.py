"""Seed a demo investor conversation with contacts and optionally run matching.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py --run-matching
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import delete

# Make `app` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal
from app.models.contact import Contact
from app.models.conversation import Conversation
from app.models.conversation_entity import ConversationEntity
from app.models.match_suggestion import MatchSuggestion
from app.models.thesis import Thesis
from app.services.matching import generate_matches


DEFAULT_CONVERSATION_ID = "founder-call-demo-001"
DEFAULT_PROFILE_ID = "demo-profile"


def build_demo_entities(conversation_id: str) -> list[ConversationEntity]:
    """Return deterministic entities for a seed-stage fintech founder call."""

    payloads = [
        ("person_name", "Sarah Johnson", "You should talk to Sarah Johnson about this round."),
        ("sector", "B2B SaaS", None),
        ("sector", "fintech", None),
        ("stage", "seed", None),
        ("check_size", "$1M-$2M", None),
        ("geography", "NYC", None),
    ]
    return [
        ConversationEntity(
            conversation_id=conversation_id,
            entity_type=entity_type,
            value=value,
            confidence=0.9,
            context_snippet=snippet,
        )
        for entity_type, value, snippet in payloads
    ]


def build_demo_contacts(profile_id: str) -> list[Contact]:
    """Return a small investor network for the demo profile."""

    sarah = Contact(
        id="demo-contact-sarah",
        owned_by_profile=profile_id,
        name="Sarah Johnson",
        company="Northline Ventures",
        bio="Partner at Northline Ventures focused on fintech infrastructure.",
    )
    marcus = Contact(
        id="demo-contact-marcus",
        owned_by_profile=profile_id,
        name="Marcus Lee",
        company="Harbor Angels",
        investor_notes="Angel investor writing first checks into B2B SaaS in New York.",
    )
    marcus.theses.append(Thesis(sectors=["B2B SaaS"], stages=["pre-seed", "seed"], check_sizes=["$250K"], geos=["NYC"]))
    priya = Contact(
        id="demo-contact-priya",
        owned_by_profile=profile_id,
        name="Priya Raman",
        company="Evergreen Family Office",
    )
    priya.theses.append(Thesis(sectors=["healthcare"], stages=["Series B"], check_sizes=["$10M"], personas=["family office"]))
    return [sarah, marcus, priya]


def reset_demo(db, conversation_id: str, profile_id: str) -> None:
    """Remove existing records for the demo conversation and profile."""

    db.execute(delete(MatchSuggestion).where(MatchSuggestion.conversation_id == conversation_id))
    db.execute(delete(ConversationEntity).where(ConversationEntity.conversation_id == conversation_id))
    db.execute(delete(Conversation).where(Conversation.id == conversation_id))
    contact_ids = [contact.id for contact in build_demo_contacts(profile_id)]
    db.execute(delete(Thesis).where(Thesis.contact_id.in_(contact_ids)))
    db.execute(delete(Contact).where(Contact.id.in_(contact_ids)))
    db.commit()


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a demo investor conversation and contacts.")
    parser.add_argument(
        "--conversation-id",
        default=DEFAULT_CONVERSATION_ID,
        help=f"Conversation ID to seed (default: {DEFAULT_CONVERSATION_ID})",
    )
    parser.add_argument(
        "--profile-id",
        default=DEFAULT_PROFILE_ID,
        help=f"Owning profile ID (default: {DEFAULT_PROFILE_ID})",
    )
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing demo records before seeding.",
    )
    parser.add_argument(
        "--run-matching",
        action="store_true",
        help="Run match generation after seeding (requires OPENAI_API_KEY).",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    conversation_id: str = args.conversation_id
    profile_id: str = args.profile_id

    with SessionLocal() as db:
        if not args.no_reset:
            reset_demo(db, conversation_id, profile_id)

        db.add(Conversation(id=conversation_id, owned_by_profile=profile_id, title="Founder call (demo)"))
        db.flush()
        entities = build_demo_entities(conversation_id)
        contacts = build_demo_contacts(profile_id)
        db.add_all(entities)
        db.add_all(contacts)
        db.commit()

        matches = []
        if args.run_matching:
            matches = generate_matches(db, conversation_id, profile_id=profile_id).matches

    print("Seed complete")
    print(f"conversation_id={conversation_id}")
    print(f"profile_id={profile_id}")
    print(f"entities_created={len(entities)}")
    print(f"contacts_created={len(contacts)}")
    for match in matches:
        print(f"  {match.score}* {match.contact_name}: {', '.join(match.reasons)}")
    print()
    print("Inspect:")
    print(f"  POST /conversations/{conversation_id}/matches")
    print(f"  GET /conversations/{conversation_id}/matches")


if __name__ == "__main__":
    main()
