# services/conversation_service.py
"""
Conversation Service - Main Orchestrator
Coordinates the travel-advisor interview: instruction building, text
generation, response validation, profile merging, stage tracking and
persistence. Quick replies, pricing and flight-search parameters are
derived deterministically from the stored profile.
"""

import logging
from typing import Optional, Dict, Any, List, Tuple

from app.conversation.models import (
    JsonChatMessage,
    JsonChatSession,
    MessageRole,
    utc_now
)
from app.conversation.context_manager import ContextManager
from app.conversation.llm_gateway import TextGenerator
from app.conversation.pricing import calculate_pricing, validate_budget
from app.conversation.prompts import PromptTemplates
from app.conversation.response_parser import ResponseParser
from app.conversation.state_machine import StateMachine
from app.conversation.suggestion_engine import SuggestionEngine
from app.conversation.validators import InputSanitizer, PassengerValidator
from services.exceptions import SessionNotFoundError
from services.flight_search import (
    build_flight_search_params,
    can_search_flights,
    get_flight_search_description
)

logger = logging.getLogger(__name__)


class ConversationService:
    """
    Main service orchestrating the travel-advisor conversation.
    Holds no per-session state; every turn works on a copy of the stored
    session and persists the result only when the whole turn succeeded.
    """

    def __init__(
        self,
        context_manager: ContextManager,
        text_generator: TextGenerator,
        response_parser: Optional[ResponseParser] = None,
        state_machine: Optional[StateMachine] = None,
        suggestion_engine: Optional[SuggestionEngine] = None
    ):
        """
        Initialize conversation service with all dependencies.

        Args:
            context_manager: Handles session persistence
            text_generator: Produces raw structured responses
            response_parser: Validates generator output
            state_machine: Applies stage changes
            suggestion_engine: Generates quick-reply options
        """
        self.context_manager = context_manager
        self.text_generator = text_generator
        self.response_parser = response_parser or ResponseParser()
        self.state_machine = state_machine or StateMachine()
        self.suggestion_engine = suggestion_engine or SuggestionEngine()

        logger.info("✓ ConversationService initialized")

    # ============================================================
    # TURN PROCESSING
    # ============================================================

    async def advance(
        self,
        session: JsonChatSession,
        user_message: str
    ) -> Tuple[JsonChatSession, str]:
        """
        Run one conversational turn.

        The input session is never mutated. If the text generator fails
        the error propagates and nothing is written.

        Args:
            session: Current session state
            user_message: Traveler's message

        Returns:
            (updated_session, assistant_message)
        """
        prompt_stage = session.effective_stage
        prompt = PromptTemplates.build_contextual_prompt(
            stage=prompt_stage,
            collected_data=session.collected_data,
            user_message=user_message
        )

        logger.debug(f"Session {session.session_id}: generating for stage {prompt_stage.value}")
        raw_response = await self.text_generator.generate(prompt)

        result = self.response_parser.validate(raw_response)

        if result.is_valid:
            payload = result.parsed_data
            new_stage, resume_stage = self.state_machine.apply(
                current=session.current_stage,
                resume=session.resume_stage,
                new=payload.conversation_stage,
                session_id=session.session_id
            )
        else:
            logger.warning(
                f"Session {session.session_id}: invalid generator response, using fallback "
                f"({result.error})"
            )
            payload = self.response_parser.generate_fallback(
                session.current_stage,
                session.collected_data
            )
            new_stage, resume_stage = session.current_stage, session.resume_stage

        merged_data = session.collected_data.merge(payload.data_collected)
        now = utc_now()

        user_entry = JsonChatMessage(
            role=MessageRole.USER,
            content=user_message,
            timestamp=now
        )
        assistant_entry = JsonChatMessage(
            role=MessageRole.ASSISTANT,
            content=payload.assistant_message,
            timestamp=now,
            json_data=payload
        )

        updates: Dict[str, Any] = {
            "messages": [*session.messages, user_entry, assistant_entry],
            "collected_data": merged_data,
            "current_stage": new_stage,
            "resume_stage": resume_stage,
            "updated_at": now,
        }

        if payload.is_final_recommendation:
            updates["has_recommendation"] = True
            updates["is_complete"] = True
            updates["completed_at"] = now
            logger.info(
                f"✅ Session {session.session_id}: recommendation ready "
                f"({merged_data.destination_name} / {merged_data.destination_iata})"
            )

        updated = session.model_copy(update=updates)

        await self.context_manager.save_session(updated)

        logger.info(
            f"✓ Turn processed: session={session.session_id}, "
            f"stage={session.current_stage.value}->{new_stage.value}"
        )
        return updated, payload.assistant_message

    async def process_turn(
        self,
        session_id: Optional[str],
        user_id: str,
        message: str
    ) -> Dict[str, Any]:
        """
        Turn API: load or create the session, advance it, and attach
        quick replies computed from the updated stage and profile.

        Raises:
            SessionNotFoundError: If the session belongs to another user
            TextGenerationError: If the text generator is unreachable
            SessionStoreError: If the session store is unreachable
        """
        clean_message = InputSanitizer.sanitize_text_input(message)
        if not clean_message:
            raise ValueError("Message cannot be empty")

        session = await self.context_manager.get_session(session_id) if session_id else None
        is_new = session is None

        if session is None:
            session = self.context_manager.new_session(user_id, session_id)
            logger.info(f"Starting new session {session.session_id} for user {user_id}")
        elif session.user_id != user_id:
            logger.warning(f"User {user_id} tried to access session {session_id}")
            raise SessionNotFoundError(session_id)

        updated, assistant_message = await self.advance(session, clean_message)

        if is_new:
            await self.context_manager.index_user_session(user_id, updated.session_id)

        options = self.suggestion_engine.get_quick_reply_options(
            updated.current_stage,
            updated.collected_data
        )

        return {
            "sessionId": updated.session_id,
            "assistantMessage": assistant_message,
            "quickReplyOptions": [o.model_dump() for o in options] if options else None,
            "stage": updated.current_stage.value,
            "isComplete": updated.is_complete,
            "hasRecommendation": updated.has_recommendation,
            "collectedData": updated.collected_data.to_prompt_dict(),
        }

    # ============================================================
    # SESSION QUERIES
    # ============================================================

    async def get_session(self, session_id: str, user_id: Optional[str] = None) -> JsonChatSession:
        """Load a session; a user_id that does not own it reads as not found"""
        session = await self.context_manager.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if user_id is not None and session.user_id != user_id:
            logger.warning(f"User {user_id} tried to access session {session_id}")
            raise SessionNotFoundError(session_id)
        return session

    async def list_user_sessions(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        sessions = await self.context_manager.get_user_sessions(user_id, limit=limit)
        return [self.context_manager.get_session_summary(s) for s in sessions]

    async def get_collected_data(self, session_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        session = await self.get_session(session_id, user_id)
        data = session.collected_data
        stats = self.response_parser.get_completion_stats(data)

        return {
            "sessionId": session.session_id,
            "collectedData": data.to_prompt_dict(),
            "currentStage": session.current_stage.value,
            "isComplete": session.is_complete,
            "hasRecommendation": session.has_recommendation,
            "readyForRecommendation": self.response_parser.is_ready_for_recommendation(data),
            "completion": stats.model_dump(),
        }

    async def get_flight_search_params(self, session_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Flight-offers parameters for a session, or a not-ready result
        when the destination has not been recommended yet.
        """
        session = await self.get_session(session_id, user_id)
        data = session.collected_data

        if not can_search_flights(data):
            return {
                "ready": False,
                "sessionId": session.session_id,
                "missing": [
                    field for field in ("origin_iata", "destination_iata")
                    if not getattr(data, field)
                ],
            }

        adults = data.passenger_composition.adults if data.passenger_composition else 1
        params = build_flight_search_params(data, adults=adults)

        return {
            "ready": True,
            "sessionId": session.session_id,
            "params": params.model_dump(by_alias=True),
            "description": get_flight_search_description(data),
        }

    async def get_pricing(self, session_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Per-person pricing, budget check and composition check"""
        session = await self.get_session(session_id, user_id)
        data = session.collected_data

        missing = []
        if data.budget_in_brl is None:
            missing.append("budget_in_brl")
        if data.passenger_composition is None:
            missing.append("passenger_composition")

        if missing:
            return {"ready": False, "sessionId": session.session_id, "missing": missing}

        pricing = calculate_pricing(data.budget_in_brl, data.passenger_composition)
        budget_check = validate_budget(data.budget_in_brl, data.passenger_composition)
        composition_check = PassengerValidator.validate_composition(data.passenger_composition)

        return {
            "ready": True,
            "sessionId": session.session_id,
            "pricing": pricing.model_dump(by_alias=True),
            "budgetValidation": budget_check.model_dump(by_alias=True),
            "passengerValidation": composition_check.model_dump(by_alias=True),
        }

    async def end_session(self, session_id: str, user_id: Optional[str] = None) -> bool:
        session = await self.get_session(session_id, user_id)
        return await self.context_manager.delete_session(session_id, user_id=session.user_id)


# ============================================================
# EXPORTS
# ============================================================

__all__ = ["ConversationService"]
