"""
Quick-reply option tests
"""

import pytest

from app.conversation.models import (
    ChildPassenger,
    CollectedData,
    ConversationStage,
    PassengerComposition
)
from app.conversation.suggestion_engine import SuggestionEngine, get_quick_reply_options


@pytest.fixture
def engine():
    return SuggestionEngine()


def test_adults_menu_when_composition_unknown(engine):
    options = engine.get_quick_reply_options(ConversationStage.COLLECTING_PASSENGERS, CollectedData())
    assert [o.label for o in options] == ["1 adulto", "2 adultos", "3 adultos", "4 adultos"]
    assert [o.value for o in options] == ["1", "2", "3", "4"]


def test_children_menu_after_adults(engine):
    data = CollectedData(passenger_composition=PassengerComposition(adults=2))
    options = engine.get_quick_reply_options(ConversationStage.COLLECTING_PASSENGERS, data)
    assert [o.label for o in options] == ["Nenhuma", "1 criança", "2 crianças", "3 crianças"]
    assert options[0].value == "0"


@pytest.mark.parametrize("children", [[], [ChildPassenger(age=4, is_paying=True)]])
def test_no_options_once_children_known(engine, children):
    data = CollectedData(passenger_composition=PassengerComposition(adults=2, children=children))
    assert engine.get_quick_reply_options(ConversationStage.COLLECTING_PASSENGERS, data) is None


@pytest.mark.parametrize("stage", [
    ConversationStage.COLLECTING_ORIGIN,
    ConversationStage.COLLECTING_BUDGET,
    ConversationStage.COLLECTING_AVAILABILITY,
    ConversationStage.RECOMMENDATION_READY,
    ConversationStage.ERROR,
])
def test_no_options_outside_passenger_stage(engine, stage):
    assert engine.get_quick_reply_options(stage, CollectedData()) is None


def test_module_function():
    options = get_quick_reply_options(ConversationStage.COLLECTING_PASSENGERS, CollectedData())
    assert len(options) == 4
