"""
Conversation Module
Travel-advisor interview: schema validation, stage tracking, date
resolution, pricing and quick replies.
"""

from app.conversation.models import (
    CollectedData,
    ConversationStage,
    JsonChatSession,
    NextQuestionKey,
    PassengerComposition
)
from app.conversation.state_machine import StateMachine
from app.conversation.context_manager import ContextManager
from app.conversation.response_parser import ResponseParser
from app.conversation.suggestion_engine import SuggestionEngine

__all__ = [
    "CollectedData",
    "ConversationStage",
    "JsonChatSession",
    "NextQuestionKey",
    "PassengerComposition",
    "StateMachine",
    "ContextManager",
    "ResponseParser",
    "SuggestionEngine",
]
