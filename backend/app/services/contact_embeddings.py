"""Thesis and bio embedding generation for contacts."""

from __future__ import annotations

import logging
from collections.abc import Collection
from time import perf_counter

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session, selectinload

from app.matching.similarity import serialize_embedding
from app.models.contact import Contact
from app.models.thesis import Thesis
from app.schemas.matching import ContactEmbeddingBatchResult, ContactEmbeddingResult
from app.services.embeddings import EmbeddingClient, EmbeddingError, embed_text, get_default_embedding_client

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25


class ContactNotFoundError(LookupError):
    """Raised when a contact id does not exist or belongs to another profile."""


def build_thesis_embedding_text(contact: Contact) -> str:
    """Render investor notes and structured theses as one text."""

    parts: list[str] = []
    if contact.investor_notes and contact.investor_notes.strip():
        parts.append(contact.investor_notes.strip())
    for thesis in contact.theses:
        for label, values in (
            ("sectors", thesis.sectors),
            ("stages", thesis.stages),
            ("check sizes", thesis.check_sizes),
            ("geographies", thesis.geos),
            ("personas", thesis.personas),
        ):
            rendered = [value.strip() for value in values or [] if value and value.strip()]
            if rendered:
                parts.append(f"{label}: {', '.join(rendered)}")
        if thesis.notes and thesis.notes.strip():
            parts.append(thesis.notes.strip())
    return " ".join(parts)


def build_bio_embedding_text(contact: Contact) -> str:
    return (contact.bio or "").strip()


def embed_contact(
    db: Session,
    contact_id: str,
    *,
    client: EmbeddingClient | None = None,
    profile_id: str | None = None,
    force_regenerate: bool = False,
) -> ContactEmbeddingResult:
    """Generate missing thesis/bio embeddings for one contact and commit them."""

    contact = db.get(Contact, contact_id)
    if contact is None or (profile_id is not None and contact.owned_by_profile != profile_id):
        raise ContactNotFoundError(f"Contact not found: {contact_id}")
    active_client = client or get_default_embedding_client()
    generated = _embed_contact_fields(contact, active_client, force_regenerate=force_regenerate)
    db.commit()
    return ContactEmbeddingResult(
        contact_id=contact.id,
        has_thesis_embedding=bool(contact.thesis_embedding),
        has_bio_embedding=bool(contact.bio_embedding),
        generated=generated,
    )


def embed_contacts_batch(
    db: Session,
    *,
    client: EmbeddingClient | None = None,
    profile_id: str | None = None,
    limit: int = DEFAULT_BATCH_SIZE,
    exclude_ids: Collection[str] = (),
) -> ContactEmbeddingBatchResult:
    """Embed one batch of contacts that are missing an embedding they have text for.

    `total` counts contacts still pending before this batch, excluding
    `exclude_ids`. Callers looping over batches pass the ids that failed so far
    so a contact that keeps failing cannot hold back the ones behind it.
    """

    total_started = perf_counter()
    active_client = client or get_default_embedding_client()
    stmt = (
        select(Contact)
        .options(selectinload(Contact.theses))
        .where(_needs_embedding_clause())
        .order_by(Contact.created_at.asc(), Contact.id.asc())
    )
    if profile_id is not None:
        stmt = stmt.where(Contact.owned_by_profile == profile_id)
    if exclude_ids:
        stmt = stmt.where(Contact.id.not_in(list(exclude_ids)))

    # The SQL clause cannot see inside thesis JSON lists; drop contacts whose text renders blank.
    pending = [contact for contact in db.scalars(stmt).all() if _pending_fields(contact)]
    contacts = pending[: max(1, limit)]
    processed = 0
    errors: list[str] = []
    failed_contact_ids: list[str] = []
    for contact in contacts:
        try:
            generated = _embed_contact_fields(contact, active_client)
        except EmbeddingError as exc:
            errors.append(f"{contact.id}: {exc}")
            failed_contact_ids.append(contact.id)
            continue
        if generated:
            processed += 1
    db.commit()

    logger.info(
        "matching.contact_embedding_batch processed=%d batch=%d total=%d errors=%d total_ms=%.2f",
        processed,
        len(contacts),
        len(pending),
        len(errors),
        (perf_counter() - total_started) * 1000.0,
    )
    return ContactEmbeddingBatchResult(
        processed=processed,
        total=len(pending),
        errors=errors,
        failed_contact_ids=failed_contact_ids,
        has_more=len(pending) > len(contacts),
    )


def _embed_contact_fields(
    contact: Contact,
    client: EmbeddingClient,
    *,
    force_regenerate: bool = False,
) -> list[str]:
    generated: list[str] = []
    if force_regenerate or not contact.thesis_embedding:
        vector = embed_text(build_thesis_embedding_text(contact), client=client)
        if vector is not None:
            contact.thesis_embedding = serialize_embedding(vector)
            generated.append("thesis")
    if force_regenerate or not contact.bio_embedding:
        vector = embed_text(build_bio_embedding_text(contact), client=client)
        if vector is not None:
            contact.bio_embedding = serialize_embedding(vector)
            generated.append("bio")
    return generated


def _pending_fields(contact: Contact) -> list[str]:
    fields: list[str] = []
    if not contact.thesis_embedding and build_thesis_embedding_text(contact):
        fields.append("thesis")
    if not contact.bio_embedding and build_bio_embedding_text(contact):
        fields.append("bio")
    return fields


def _needs_embedding_clause():
    has_thesis_rows = exists().where(Thesis.contact_id == Contact.id)
    has_thesis_text = or_(
        and_(Contact.investor_notes.is_not(None), Contact.investor_notes != ""),
        has_thesis_rows,
    )
    has_bio_text = and_(Contact.bio.is_not(None), Contact.bio != "")
    return or_(
        and_(Contact.thesis_embedding.is_(None), has_thesis_text),
        and_(Contact.bio_embedding.is_(None), has_bio_text),
    )
