"""
Shared fixtures for the travel-advisor tests.
The text generator is replaced by a scripted fake; sessions live in the
in-memory cache.
"""

import json
from typing import Any, Dict, List, Optional, Union

import pytest

from app.conversation.context_manager import ContextManager
from app.infrastructure.cache import InMemoryCache
from services.conversation_service import ConversationService


EMPTY_DATA: Dict[str, Any] = {
    "origin_name": None,
    "origin_iata": None,
    "destination_name": None,
    "destination_iata": None,
    "activities": None,
    "budget_in_brl": None,
    "availability_months": None,
    "purpose": None,
    "hobbies": None,
    "passenger_composition": None,
}


def make_payload(
    stage: str = "collecting_budget",
    message: str = "Qual é o seu orçamento?",
    next_key: Optional[str] = "budget",
    final: bool = False,
    **data: Any
) -> Dict[str, Any]:
    """Five-field generator payload with every profile key present"""
    collected = dict(EMPTY_DATA)
    collected.update(data)
    return {
        "conversation_stage": stage,
        "data_collected": collected,
        "next_question_key": next_key,
        "assistant_message": message,
        "is_final_recommendation": final,
    }


def make_response(**kwargs: Any) -> str:
    return json.dumps(make_payload(**kwargs), ensure_ascii=False)


class FakeTextGenerator:
    """Returns queued responses in order; queued exceptions are raised"""

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def queue(self, *responses: Union[str, Exception]):
        self.responses.extend(responses)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("FakeTextGenerator has no queued response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def context_manager(cache):
    return ContextManager(cache=cache, ttl_seconds=3600, max_user_sessions=5)


@pytest.fixture
def generator():
    return FakeTextGenerator()


@pytest.fixture
def service(context_manager, generator):
    return ConversationService(context_manager=context_manager, text_generator=generator)
