# app/api/v1/endpoints/chat.py
"""
Travel Advisor Chat API Endpoints
Thin layer over ConversationService - handles HTTP concerns only.
"""

from typing import Dict, Any, NoReturn
from fastapi import APIRouter, HTTPException, Depends, Query, status
import logging

from app.api.v1.dependencies import get_conversation_service
from app.core.config import settings
from app.db.redis_client import health_check as redis_health_check
from schemas.chat import ChatTurnRequest, ChatTurnResponse, SessionListResponse
from services.conversation_service import ConversationService
from services.exceptions import (
    SessionNotFoundError,
    SessionStoreError,
    TextGenerationError,
    TextGenerationTimeoutError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

RETRY_MESSAGE = "O assistente está indisponível no momento. Tente novamente em instantes."


def _raise_http(error: Exception, action: str) -> NoReturn:
    """Map service exceptions onto HTTP errors"""
    if isinstance(error, SessionNotFoundError):
        logger.warning(f"{action}: {error}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    if isinstance(error, TextGenerationTimeoutError):
        logger.error(f"{action}: text generator timed out: {error}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)

    if isinstance(error, TextGenerationError):
        logger.error(f"{action}: text generator failed: {error}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)

    if isinstance(error, SessionStoreError):
        logger.error(f"{action}: session store failed: {error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session storage unavailable. Please try again."
        )

    if isinstance(error, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    logger.exception(f"{action}: {error}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


# ============================================================
# TURN ENDPOINT
# ============================================================

@router.post("/turn", response_model=ChatTurnResponse)
async def chat_turn(
    request_body: ChatTurnRequest,
    service: ConversationService = Depends(get_conversation_service)
):
    """
    Send one traveler message and get the advisor's reply.

    Omitting sessionId starts a new interview. Quick replies are returned
    while the passenger composition is being collected.
    """
    try:
        logger.info(
            f"Chat turn: session={request_body.session_id or 'new'}, "
            f"user={request_body.user_id}, length={len(request_body.message)}"
        )
        result = await service.process_turn(
            session_id=request_body.session_id,
            user_id=request_body.user_id,
            message=request_body.message
        )
        logger.info(f"✓ Chat turn done: session={result['sessionId']}, stage={result['stage']}")
        return result

    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error processing chat turn")


# ============================================================
# SESSION ENDPOINTS
# ============================================================

@router.get("/sessions/user/{user_id}", response_model=SessionListResponse)
async def list_user_sessions(
    user_id: str,
    limit: int = Query(10, ge=1, le=settings.MAX_USER_SESSIONS),
    service: ConversationService = Depends(get_conversation_service)
):
    """Recent sessions of a user, most recent first"""
    try:
        sessions = await service.list_user_sessions(user_id, limit=limit)
        return {"userId": user_id, "sessions": sessions, "total": len(sessions)}
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error listing sessions")


@router.get("/sessions/{session_id}", response_model=Dict[str, Any])
async def get_session(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: ConversationService = Depends(get_conversation_service)
):
    """Full session with its message history"""
    try:
        session = await service.get_session(session_id, user_id)
        return session.to_storage_dict()
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error retrieving session")


@router.get("/sessions/{session_id}/collected-data", response_model=Dict[str, Any])
async def get_collected_data(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: ConversationService = Depends(get_conversation_service)
):
    """Travel profile collected so far, with completion stats"""
    try:
        return await service.get_collected_data(session_id, user_id)
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error retrieving collected data")


@router.get("/sessions/{session_id}/flight-search-params", response_model=Dict[str, Any])
async def get_flight_search_params(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: ConversationService = Depends(get_conversation_service)
):
    """Flight-offers search parameters once origin and destination are known"""
    try:
        return await service.get_flight_search_params(session_id, user_id)
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error building flight search params")


@router.get("/sessions/{session_id}/pricing", response_model=Dict[str, Any])
async def get_pricing(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: ConversationService = Depends(get_conversation_service)
):
    """Per-person pricing and budget validation"""
    try:
        return await service.get_pricing(session_id, user_id)
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error calculating pricing")


@router.delete("/sessions/{session_id}", response_model=Dict[str, Any])
async def end_session(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    service: ConversationService = Depends(get_conversation_service)
):
    try:
        deleted = await service.end_session(session_id, user_id)
        return {"sessionId": session_id, "deleted": deleted}
    except HTTPException:
        raise
    except Exception as e:
        _raise_http(e, "Error ending session")


# ============================================================
# HEALTH CHECK
# ============================================================

@router.get("/health", response_model=Dict[str, Any])
async def health():
    """Health check for the chat service"""
    redis_ok = await redis_health_check() if settings.USE_REDIS else None

    return {
        "status": "healthy" if redis_ok is not False else "degraded",
        "service": "chat",
        "provider": settings.LLM_PROVIDER,
        "redis": redis_ok,
    }
