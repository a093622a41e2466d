# app/conversation/models.py
"""
Centralized data models for the travel-advisor conversation.
All Pydantic v2 models and enums live here to prevent circular imports.
Session models serialize with the camelCase keys the web client expects.
"""

import uuid
from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# ENUMS
# ============================================================

class ConversationStage(str, Enum):
    """
    Interview stages, in collection order.
    ERROR is transient: the session resumes the stage that raised it.
    """
    COLLECTING_ORIGIN = "collecting_origin"
    COLLECTING_BUDGET = "collecting_budget"
    COLLECTING_PASSENGERS = "collecting_passengers"
    COLLECTING_AVAILABILITY = "collecting_availability"
    COLLECTING_ACTIVITIES = "collecting_activities"
    COLLECTING_PURPOSE = "collecting_purpose"
    COLLECTING_HOBBIES = "collecting_hobbies"
    RECOMMENDATION_READY = "recommendation_ready"
    ERROR = "error"


class NextQuestionKey(str, Enum):
    """Keys of the question the assistant should ask next"""
    ORIGIN = "origin"
    BUDGET = "budget"
    PASSENGERS = "passengers"
    AVAILABILITY = "availability"
    ACTIVITIES = "activities"
    PURPOSE = "purpose"
    HOBBIES = "hobbies"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# ============================================================
# TRAVEL PROFILE
# ============================================================

class ChildPassenger(BaseModel):
    """A child travelling with the group (0-17 years)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    age: int = Field(..., ge=0, le=17)
    is_paying: bool = Field(..., alias="isPaying")


class PassengerComposition(BaseModel):
    """
    Group composition. `children` stays None until the traveler answers
    the children question; an empty list means "no children".
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    adults: int = Field(..., ge=1)
    children: Optional[List[ChildPassenger]] = None

    @property
    def total_passengers(self) -> int:
        return self.adults + len(self.children or [])


class CollectedData(BaseModel):
    """
    Structured travel profile accumulated across the conversation.
    Immutable: every turn builds a new instance through `merge`.
    """
    model_config = ConfigDict(frozen=True)

    origin_name: Optional[str] = None
    origin_iata: Optional[str] = None
    destination_name: Optional[str] = None
    destination_iata: Optional[str] = None
    activities: Optional[List[str]] = None
    budget_in_brl: Optional[float] = Field(None, ge=0)
    availability_months: Optional[List[str]] = None
    purpose: Optional[str] = None
    hobbies: Optional[List[str]] = None
    passenger_composition: Optional[PassengerComposition] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return list(cls.model_fields.keys())

    def merge(self, update: "CollectedData") -> "CollectedData":
        """
        Field-by-field merge: non-null values from `update` win,
        nulls never erase what was already collected.
        """
        changes = {
            name: getattr(update, name)
            for name in self.field_names()
            if getattr(update, name) is not None
        }
        return self.model_copy(update=changes)

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Serialization used inside generator instructions"""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================
# GENERATOR PAYLOAD
# ============================================================

class ChatbotJsonResponse(BaseModel):
    """The five-field payload the text generator must return"""
    conversation_stage: ConversationStage
    data_collected: CollectedData
    next_question_key: Optional[NextQuestionKey] = None
    assistant_message: str
    is_final_recommendation: bool


class ValidationResult(BaseModel):
    """Outcome of validating a raw generator response"""
    is_valid: bool
    parsed_data: Optional[ChatbotJsonResponse] = None
    error: Optional[str] = None


# ============================================================
# SESSION
# ============================================================

class JsonChatMessage(BaseModel):
    """
    Single message in the conversation history.
    Only assistant messages carry the validated payload.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    json_data: Optional[ChatbotJsonResponse] = Field(None, alias="jsonData")

    @model_validator(mode="after")
    def check_json_data_role(self):
        if self.json_data is not None and self.role != MessageRole.ASSISTANT:
            raise ValueError("jsonData can only be attached to assistant messages")
        return self


class JsonChatSession(BaseModel):
    """
    Complete conversation session state.
    Owned by the session store; the orchestrator works on copies.
    """
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    user_id: str = Field(..., alias="userId")
    messages: List[JsonChatMessage] = Field(default_factory=list)
    current_stage: ConversationStage = Field(
        ConversationStage.COLLECTING_ORIGIN, alias="currentStage"
    )
    collected_data: CollectedData = Field(default_factory=CollectedData, alias="collectedData")
    is_complete: bool = Field(False, alias="isComplete")
    has_recommendation: bool = Field(False, alias="hasRecommendation")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    # Stage to return to while the session sits in ERROR
    resume_stage: Optional[ConversationStage] = Field(None, alias="resumeStage")

    @field_validator("resume_stage")
    @classmethod
    def resume_stage_not_error(cls, value):
        if value == ConversationStage.ERROR:
            return None
        return value

    @property
    def effective_stage(self) -> ConversationStage:
        """Stage the next instruction is built for"""
        if self.current_stage == ConversationStage.ERROR and self.resume_stage:
            return self.resume_stage
        return self.current_stage

    def to_storage_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================
# BUSINESS RESULTS
# ============================================================

class QuickReplyOption(BaseModel):
    """Predefined clickable reply offered instead of free text"""
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class DateRange(BaseModel):
    """Concrete round-trip dates (ISO YYYY-MM-DD)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    departure_date: str = Field(..., alias="departureDate")
    return_date: str = Field(..., alias="returnDate")


class PricingCalculation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_passengers: int = Field(..., alias="totalPassengers")
    paying_passengers: int = Field(..., alias="payingPassengers")
    non_paying_passengers: int = Field(..., alias="nonPayingPassengers")
    per_person_budget: float = Field(..., alias="perPersonBudget")
    total_budget: float = Field(..., alias="totalBudget")


class BudgetValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    message: Optional[str] = None


class PassengerValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    errors: List[str] = Field(default_factory=list)


class FlightSearchParams(BaseModel):
    """
    Search request for the downstream flight-offers provider.
    Field aliases follow the provider's query parameter names.
    """
    model_config = ConfigDict(populate_by_name=True)

    origin_location_code: str = Field(..., alias="originLocationCode")
    destination_location_code: str = Field(..., alias="destinationLocationCode")
    departure_date: str = Field(..., alias="departureDate")
    return_date: str = Field(..., alias="returnDate")
    adults: int = Field(1, ge=1)
    non_stop: bool = Field(False, alias="nonStop")
    max: int = Field(50, ge=1)


class CompletionStats(BaseModel):
    completed: int
    total: int
    percentage: int
    missing_fields: List[str] = Field(default_factory=list)
