"""
Response Schema Validator Tests
"""

import json

import pytest

from app.conversation.models import (
    CollectedData,
    ConversationStage,
    NextQuestionKey,
    PassengerComposition
)
from app.conversation.response_parser import FALLBACK_MESSAGE, ResponseParser

from conftest import make_payload, make_response


@pytest.fixture
def parser():
    return ResponseParser()


# ============================================================
# ACCEPTED PAYLOADS
# ============================================================

def test_valid_payload(parser):
    raw = make_response(
        stage="collecting_budget",
        origin_name="São Paulo",
        origin_iata="GRU",
    )
    result = parser.validate(raw)

    assert result.is_valid
    assert result.error is None
    parsed = result.parsed_data
    assert parsed.conversation_stage == ConversationStage.COLLECTING_BUDGET
    assert parsed.next_question_key == NextQuestionKey.BUDGET
    assert parsed.data_collected.origin_iata == "GRU"
    assert parsed.is_final_recommendation is False


def test_code_fences_and_prefix_are_stripped(parser):
    raw = "Here's the JSON:\n```json\n" + make_response() + "\n```"
    assert parser.validate(raw).is_valid


def test_null_next_question_key(parser):
    result = parser.validate(make_response(stage="recommendation_ready", next_key=None))
    assert result.is_valid
    assert result.parsed_data.next_question_key is None


def test_passenger_composition_parsed(parser):
    raw = make_response(
        stage="collecting_availability",
        next_key="availability",
        passenger_composition={"adults": 2, "children": [{"age": 1, "isPaying": False}]},
    )
    result = parser.validate(raw)
    assert result.is_valid
    composition = result.parsed_data.data_collected.passenger_composition
    assert composition.adults == 2
    assert composition.children[0].is_paying is False


def test_button_options_ignored(parser):
    payload = make_payload()
    payload["button_options"] = [{"label": "1 adulto", "value": "1"}]
    assert parser.validate(json.dumps(payload)).is_valid


def test_final_recommendation_with_destination(parser):
    raw = make_response(
        stage="recommendation_ready",
        next_key=None,
        final=True,
        destination_name="Salvador",
        destination_iata="SSA",
    )
    result = parser.validate(raw)
    assert result.is_valid
    assert result.parsed_data.is_final_recommendation is True


def test_leaked_options_removed_from_message(parser):
    raw = make_response(
        message='Quantos adultos vão viajar? [{"label": "1 adulto", "value": "1"}, {"label": "2 adultos", "value": "2"}]'
    )
    result = parser.validate(raw)
    assert result.is_valid
    assert result.parsed_data.assistant_message == "Quantos adultos vão viajar?"


# ============================================================
# REJECTED PAYLOADS
# ============================================================

@pytest.mark.parametrize("raw", ["", "not json", "[1, 2]", "{\"conversation_stage\": "])
def test_unparseable_or_wrong_shape(parser, raw):
    result = parser.validate(raw)
    assert not result.is_valid
    assert result.parsed_data is None
    assert result.error


@pytest.mark.parametrize("field", [
    "conversation_stage",
    "data_collected",
    "next_question_key",
    "assistant_message",
    "is_final_recommendation",
])
def test_missing_required_field(parser, field):
    payload = make_payload()
    del payload[field]
    result = parser.validate(json.dumps(payload))
    assert not result.is_valid
    assert result.error == f"Missing required field: {field}"


def test_unknown_stage(parser):
    result = parser.validate(make_response(stage="collecting_everything"))
    assert not result.is_valid
    assert "conversation_stage" in result.error


def test_unknown_next_question_key(parser):
    result = parser.validate(make_response(next_key="shoe_size"))
    assert not result.is_valid
    assert "next_question_key" in result.error


def test_final_flag_must_be_boolean(parser):
    payload = make_payload()
    payload["is_final_recommendation"] = "false"
    assert not parser.validate(json.dumps(payload)).is_valid


def test_missing_profile_key(parser):
    payload = make_payload()
    del payload["data_collected"]["hobbies"]
    result = parser.validate(json.dumps(payload))
    assert not result.is_valid
    assert result.error == "Missing field in data_collected: hobbies"


@pytest.mark.parametrize("field,value", [
    ("budget_in_brl", "3000"),
    ("budget_in_brl", -10),
    ("budget_in_brl", True),
    ("budget_in_brl", float("inf")),
    ("budget_in_brl", float("nan")),
    ("origin_iata", 123),
    ("activities", "praia"),
    ("activities", ["praia", 3]),
    ("passenger_composition", {"adults": 0}),
    ("passenger_composition", {"adults": 2, "children": [{"age": 20, "isPaying": True}]}),
    ("passenger_composition", {"adults": 2, "children": [{"age": 4}]}),
])
def test_wrong_profile_types(parser, field, value):
    result = parser.validate(make_response(**{field: value}))
    assert not result.is_valid
    assert field in result.error


def test_final_recommendation_without_destination(parser):
    result = parser.validate(make_response(stage="recommendation_ready", next_key=None, final=True))
    assert not result.is_valid
    assert "destination" in result.error


# ============================================================
# FALLBACK & PROGRESS
# ============================================================

def test_fallback_keeps_stage_and_data(parser):
    data = CollectedData(origin_name="Recife", origin_iata="REC")
    fallback = parser.generate_fallback(ConversationStage.COLLECTING_BUDGET, data)

    assert fallback.conversation_stage == ConversationStage.COLLECTING_BUDGET
    assert fallback.data_collected == data
    assert fallback.next_question_key == NextQuestionKey.BUDGET
    assert fallback.assistant_message == FALLBACK_MESSAGE
    assert fallback.is_final_recommendation is False


def test_determine_next_question_order(parser):
    data = CollectedData()
    assert parser.determine_next_question(data) == NextQuestionKey.ORIGIN

    data = data.merge(CollectedData(origin_name="Recife", origin_iata="REC"))
    assert parser.determine_next_question(data) == NextQuestionKey.BUDGET

    data = data.merge(CollectedData(budget_in_brl=0))
    assert parser.determine_next_question(data) == NextQuestionKey.PASSENGERS

    data = data.merge(CollectedData(passenger_composition=PassengerComposition(adults=1)))
    assert parser.determine_next_question(data) == NextQuestionKey.AVAILABILITY

    data = data.merge(CollectedData(availability_months=["Julho"]))
    assert parser.determine_next_question(data) == NextQuestionKey.ACTIVITIES

    data = data.merge(CollectedData(activities=["Praia"]))
    assert parser.determine_next_question(data) == NextQuestionKey.PURPOSE
    assert not parser.is_ready_for_recommendation(data)

    data = data.merge(CollectedData(purpose="Lazer"))
    assert parser.determine_next_question(data) is None
    assert parser.is_ready_for_recommendation(data)


def test_completion_stats(parser):
    data = CollectedData(origin_name="Recife", origin_iata="REC", budget_in_brl=2000, activities=[])
    stats = parser.get_completion_stats(data)

    assert stats.total == 8
    assert stats.completed == 3
    assert stats.percentage == 38
    assert "activities" in stats.missing_fields
    assert "origin_name" not in stats.missing_fields


def test_escaped_emoji_becomes_real_character(parser):
    result = parser.validate(make_response(message="Oi \\ud83d\\ude00 qual sua origem?"))

    assert result.is_valid
    message = result.parsed_data.assistant_message
    assert message == "Oi \U0001F600 qual sua origem?"
    message.encode("utf-8")


def test_lone_escaped_surrogate_is_replaced(parser):
    result = parser.validate(make_response(message="Oi \\ud83d tudo bem?"))

    assert result.is_valid
    assert result.parsed_data.assistant_message == "Oi \ufffd tudo bem?"
