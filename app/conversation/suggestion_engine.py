# app/conversation/suggestion_engine.py
"""
Quick-Reply Option Generator
Rule-based clickable replies for the passenger questions.
Options are derived from stage and collected data only; whatever the
text generator suggests is never passed through.
"""

import logging
from typing import List, Optional

from app.conversation.models import (
    ConversationStage,
    CollectedData,
    QuickReplyOption
)

logger = logging.getLogger(__name__)


ADULT_OPTIONS = (
    QuickReplyOption(label="1 adulto", value="1"),
    QuickReplyOption(label="2 adultos", value="2"),
    QuickReplyOption(label="3 adultos", value="3"),
    QuickReplyOption(label="4 adultos", value="4"),
)

CHILDREN_OPTIONS = (
    QuickReplyOption(label="Nenhuma", value="0"),
    QuickReplyOption(label="1 criança", value="1"),
    QuickReplyOption(label="2 crianças", value="2"),
    QuickReplyOption(label="3 crianças", value="3"),
)


class SuggestionEngine:
    """
    Generates quick-reply options for the current turn.
    Only the passenger stage has predefined answers.
    """

    def get_quick_reply_options(
        self,
        stage: ConversationStage,
        collected_data: CollectedData
    ) -> Optional[List[QuickReplyOption]]:
        """
        Options for the given stage, or None when free text is expected.

        Args:
            stage: Stage after the turn was processed
            collected_data: Merged travel profile

        Returns:
            Adults menu, children menu, or None
        """
        if stage != ConversationStage.COLLECTING_PASSENGERS:
            return None

        composition = collected_data.passenger_composition

        if composition is None:
            logger.debug("Offering adults quick replies")
            return list(ADULT_OPTIONS)

        if composition.children is None:
            logger.debug("Offering children quick replies")
            return list(CHILDREN_OPTIONS)

        return None


def get_quick_reply_options(
    stage: ConversationStage,
    collected_data: CollectedData
) -> Optional[List[QuickReplyOption]]:
    return SuggestionEngine().get_quick_reply_options(stage, collected_data)


__all__ = [
    "SuggestionEngine",
    "get_quick_reply_options",
    "ADULT_OPTIONS",
    "CHILDREN_OPTIONS",
]
