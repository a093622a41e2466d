"""
OpenAI text generator tests with a fake SDK client
"""

from types import SimpleNamespace

import httpx
import openai
import pytest

from app.conversation.llm_gateway import TextGenerator, build_text_generator
from services.exceptions import TextGenerationError, TextGenerationTimeoutError
from services.llm_service import OpenAILLMService

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/responses")


class FakeResponses:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(output_text=outcome)


class FakeOpenAI:
    def __init__(self, outcomes):
        self.responses = FakeResponses(outcomes)
        self.closed = False

    def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_generate_strips_output_and_sends_prompt():
    client = FakeOpenAI(['  {"ok": true}\n'])
    service = OpenAILLMService(client=client)

    assert await service.generate("  instrução  ") == '{"ok": true}'
    sent = client.responses.calls[0]["input"]
    assert sent[0]["role"] == "system"
    assert sent[1] == {"role": "user", "content": "instrução"}
    assert isinstance(service, TextGenerator)

    await service.close()
    assert client.closed


@pytest.mark.asyncio
async def test_connection_errors_are_retried():
    client = FakeOpenAI([openai.APIConnectionError(request=REQUEST), "pronto"])
    service = OpenAILLMService(client=client)

    assert await service.generate("x") == "pronto"
    assert len(client.responses.calls) == 2


@pytest.mark.asyncio
async def test_exhausted_retries_raise_generation_error():
    service = OpenAILLMService(client=FakeOpenAI(
        [openai.APIConnectionError(request=REQUEST)] * 5
    ))
    service.attempts = 2

    with pytest.raises(TextGenerationError):
        await service.generate("x")


@pytest.mark.asyncio
async def test_timeout_raises_timeout_error():
    service = OpenAILLMService(client=FakeOpenAI([openai.APITimeoutError(request=REQUEST)]))
    service.attempts = 1

    with pytest.raises(TextGenerationTimeoutError):
        await service.generate("x")


def test_unknown_provider_rejected():
    with pytest.raises(ValueError):
        build_text_generator("carrier-pigeon")
