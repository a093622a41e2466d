# schemas/chat.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any

from app.core.config import settings


class ChatTurnRequest(BaseModel):
    """One traveler message for the advisor"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sessionId": "550e8400-e29b-41d4-a716-446655440000",
                "userId": "user-123",
                "message": "Saindo de São Paulo com R$ 3000 para praia"
            }
        }
    )

    session_id: Optional[str] = Field(None, alias="sessionId", description="Omit to start a new session")
    user_id: str = Field(..., alias="userId", min_length=1, description="Session owner")
    message: str = Field(..., min_length=1, max_length=settings.MAX_MESSAGE_LENGTH)

    @field_validator('message')
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class QuickReplyOptionOut(BaseModel):
    label: str
    value: str


class ChatTurnResponse(BaseModel):
    """Assistant reply plus the state the client renders"""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    assistant_message: str = Field(..., alias="assistantMessage")
    quick_reply_options: Optional[List[QuickReplyOptionOut]] = Field(None, alias="quickReplyOptions")
    stage: str
    is_complete: bool = Field(..., alias="isComplete")
    has_recommendation: bool = Field(..., alias="hasRecommendation")
    collected_data: Dict[str, Any] = Field(..., alias="collectedData")


class RecommendedDestination(BaseModel):
    name: str
    iata: Optional[str] = None


class SessionSummary(BaseModel):
    """Entry of a user's session history"""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    current_stage: str = Field(..., alias="currentStage")
    is_complete: bool = Field(..., alias="isComplete")
    has_recommendation: bool = Field(..., alias="hasRecommendation")
    message_count: int = Field(..., alias="messageCount")
    summary: str = Field("", description="First user message, truncated")
    recommended_destination: Optional[RecommendedDestination] = Field(None, alias="recommendedDestination")


class SessionListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    sessions: List[SessionSummary]
    total: int
