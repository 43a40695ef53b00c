"""Contact embedding routes."""

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.matching.scoring import MatchingConfigurationError
from app.schemas.common import ApiResponse
from app.schemas.matching import ContactEmbeddingBatchResult, ContactEmbeddingResult
from app.services.contact_embeddings import ContactNotFoundError, embed_contact, embed_contacts_batch
from app.services.embeddings import EmbeddingError

router = APIRouter(prefix="/contacts")


@router.post("/embeddings/batch", response_model=ApiResponse[ContactEmbeddingBatchResult])
def embed_contacts(
    limit: int = Query(default=25, ge=1, le=100),
    profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    db: Session = Depends(get_db),
) -> ApiResponse[ContactEmbeddingBatchResult]:
    """Embed one batch of contacts missing thesis or bio embeddings."""

    try:
        result = embed_contacts_batch(db, profile_id=profile_id, limit=limit)
    except MatchingConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ApiResponse(data=result)


@router.post("/{contact_id}/embeddings", response_model=ApiResponse[ContactEmbeddingResult])
def embed_single_contact(
    contact_id: str = Path(..., min_length=1),
    force_regenerate: bool = Query(default=False),
    profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    db: Session = Depends(get_db),
) -> ApiResponse[ContactEmbeddingResult]:
    """Generate thesis and bio embeddings for one contact."""

    try:
        result = embed_contact(db, contact_id, profile_id=profile_id, force_regenerate=force_regenerate)
    except ContactNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except MatchingConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except EmbeddingError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ApiResponse(data=result)
