"""Conversation lookup and read helpers for the matching pipeline."""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.matching.types import ContactProfile, MentionedEntity, ThesisCriteria
from app.models.contact import Contact
from app.models.conversation import Conversation
from app.models.conversation_entity import ConversationEntity


class ConversationNotFoundError(LookupError):
    """Raised when a conversation id does not exist."""


class ConversationAccessError(PermissionError):
    """Raised when a profile does not own the requested conversation."""


def get_conversation(db: Session, conversation_id: str, *, profile_id: str | None = None) -> Conversation:
    """Load a conversation, checking ownership when a profile is given."""

    conversation = db.get(Conversation, conversation_id)
    if conversation is None:
        raise ConversationNotFoundError(f"Conversation not found: {conversation_id}")
    if profile_id is not None and conversation.owned_by_profile != profile_id:
        raise ConversationAccessError("Forbidden: You do not own this conversation")
    return conversation


def list_conversation_entities(db: Session, conversation_id: str) -> list[ConversationEntity]:
    """Return entities in extraction order."""

    stmt = (
        select(ConversationEntity)
        .where(ConversationEntity.conversation_id == conversation_id)
        .order_by(ConversationEntity.id.asc())
    )
    return list(db.scalars(stmt).all())


def list_profile_contacts(db: Session, profile_id: str) -> list[Contact]:
    """Return a profile's contacts with theses eagerly loaded."""

    stmt = (
        select(Contact)
        .options(selectinload(Contact.theses))
        .where(Contact.owned_by_profile == profile_id)
        .order_by(Contact.created_at.asc(), Contact.id.asc())
    )
    return list(db.scalars(stmt).all())


def to_mentioned_entity(entity: ConversationEntity) -> MentionedEntity:
    return MentionedEntity(entity_type=entity.entity_type, value=entity.value)


def to_contact_profile(contact: Contact) -> ContactProfile:
    return ContactProfile(
        id=contact.id,
        name=contact.name,
        company=contact.company,
        thesis_embedding=contact.thesis_embedding,
        bio_embedding=contact.bio_embedding,
        theses=[
            ThesisCriteria(
                sectors=list(thesis.sectors or []),
                stages=list(thesis.stages or []),
                check_sizes=list(thesis.check_sizes or []),
                geos=list(thesis.geos or []),
                personas=list(thesis.personas or []),
                notes=thesis.notes,
            )
            for thesis in contact.theses
        ],
    )
