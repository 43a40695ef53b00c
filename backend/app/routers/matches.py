"""Match generation routes."""

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.matching.scoring import MatchingConfigurationError, ScoringOracleError, ScoringTimeoutError
from app.schemas.common import ApiResponse
from app.schemas.matching import ConversationEmbeddingResult, GenerateMatchesResult, MatchSuggestionRead
from app.services.conversation_embedding import get_or_create_conversation_embedding
from app.services.conversations import ConversationAccessError, ConversationNotFoundError, get_conversation
from app.services.matching import MatchPersistenceError, generate_matches, list_match_suggestions

router = APIRouter(prefix="/conversations/{conversation_id}")


@router.post("/matches", response_model=ApiResponse[GenerateMatchesResult])
def create_matches(
    conversation_id: str = Path(..., min_length=1),
    profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    db: Session = Depends(get_db),
) -> ApiResponse[GenerateMatchesResult]:
    """Generate and store introduction suggestions for a conversation."""

    try:
        result = generate_matches(db, conversation_id, profile_id=profile_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConversationAccessError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except MatchingConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ScoringTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except ScoringOracleError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except MatchPersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ApiResponse(data=result)


@router.get("/matches", response_model=ApiResponse[list[MatchSuggestionRead]])
def get_matches(
    conversation_id: str = Path(..., min_length=1),
    profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    db: Session = Depends(get_db),
) -> ApiResponse[list[MatchSuggestionRead]]:
    """List stored suggestions for a conversation."""

    try:
        get_conversation(db, conversation_id, profile_id=profile_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConversationAccessError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return ApiResponse(data=list_match_suggestions(db, conversation_id))


@router.post("/embedding", response_model=ApiResponse[ConversationEmbeddingResult])
def embed_conversation(
    conversation_id: str = Path(..., min_length=1),
    force_regenerate: bool = Query(default=False),
    profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationEmbeddingResult]:
    """Return the cached entity embedding, generating it when missing."""

    try:
        result = get_or_create_conversation_embedding(
            db,
            conversation_id,
            force_regenerate=force_regenerate,
            profile_id=profile_id,
        )
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConversationAccessError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return ApiResponse(data=result)
