# app/conversation/state_machine.py
"""
Stage model for the travel-advisor interview.
The text generator decides the stage; this module only knows the
collection order, recognizes unusual jumps and handles the transient
ERROR stage.
"""

import logging
from typing import Optional, Tuple

from app.conversation.models import ConversationStage, NextQuestionKey

logger = logging.getLogger(__name__)


# Collection order; COLLECTING_HOBBIES is accepted but never required
STAGE_ORDER = (
    ConversationStage.COLLECTING_ORIGIN,
    ConversationStage.COLLECTING_BUDGET,
    ConversationStage.COLLECTING_PASSENGERS,
    ConversationStage.COLLECTING_AVAILABILITY,
    ConversationStage.COLLECTING_ACTIVITIES,
    ConversationStage.COLLECTING_PURPOSE,
    ConversationStage.COLLECTING_HOBBIES,
    ConversationStage.RECOMMENDATION_READY,
)

QUESTION_STAGE = {
    NextQuestionKey.ORIGIN: ConversationStage.COLLECTING_ORIGIN,
    NextQuestionKey.BUDGET: ConversationStage.COLLECTING_BUDGET,
    NextQuestionKey.PASSENGERS: ConversationStage.COLLECTING_PASSENGERS,
    NextQuestionKey.AVAILABILITY: ConversationStage.COLLECTING_AVAILABILITY,
    NextQuestionKey.ACTIVITIES: ConversationStage.COLLECTING_ACTIVITIES,
    NextQuestionKey.PURPOSE: ConversationStage.COLLECTING_PURPOSE,
    NextQuestionKey.HOBBIES: ConversationStage.COLLECTING_HOBBIES,
}


class StateMachine:
    """
    Applies generator-chosen stages to a session.
    Transitions are never rejected: a backward jump is only logged.
    """

    def is_sequential(self, current: ConversationStage, new: ConversationStage) -> bool:
        """Staying put, moving forward, or entering/leaving ERROR"""
        if ConversationStage.ERROR in (current, new):
            return True
        return STAGE_ORDER.index(new) >= STAGE_ORDER.index(current)

    def apply(
        self,
        current: ConversationStage,
        resume: Optional[ConversationStage],
        new: ConversationStage,
        session_id: Optional[str] = None
    ) -> Tuple[ConversationStage, Optional[ConversationStage]]:
        """
        Compute the session's next (current_stage, resume_stage).

        Entering ERROR remembers the stage to resume; any other stage
        clears it.
        """
        effective = resume if current == ConversationStage.ERROR and resume else current

        if not self.is_sequential(effective, new):
            logger.warning(
                f"Non-sequential stage jump for session {session_id}: "
                f"{effective.value} -> {new.value}"
            )

        if new == ConversationStage.ERROR:
            logger.info(f"Session {session_id} entered error stage, will resume {effective.value}")
            return new, effective if effective != ConversationStage.ERROR else None

        return new, None

    @staticmethod
    def stage_for_question(key: Optional[NextQuestionKey]) -> ConversationStage:
        if key is None:
            return ConversationStage.RECOMMENDATION_READY
        return QUESTION_STAGE[key]

    @staticmethod
    def is_terminal(stage: ConversationStage) -> bool:
        return stage == ConversationStage.RECOMMENDATION_READY


__all__ = [
    "StateMachine",
    "STAGE_ORDER",
    "QUESTION_STAGE",
]
