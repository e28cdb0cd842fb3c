"""
Flashdeck - LLM Client Tests
"""
from types import SimpleNamespace

import pytest

from flashdeck.ai.flashcard_generator import FlashcardGenerator
from flashdeck.ai.llm import LLMClient, StructuredOutputError
from flashdeck.core.exceptions import ProviderFormatError
from flashdeck.schemas.generation import GeneratedCardSet
from tests.conftest import make_cards


class FakeStructuredModel:
    """Replays canned structured-output results, one per call."""

    def __init__(self, results: list[dict]):
        self.results = list(results)
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        return self.results.pop(0)


class FakeChatModel:
    def __init__(self, structured: FakeStructuredModel):
        self.structured = structured
        self.schema = None

    def with_structured_output(self, schema, method=None, include_raw=False):
        self.schema = schema
        return self.structured


def malformed() -> dict:
    return {
        "raw": SimpleNamespace(usage_metadata={"input_tokens": 10, "output_tokens": 5}),
        "parsed": None,
        "parsing_error": ValueError("1 validation error for GeneratedCardSet"),
    }


def parsed(count: int) -> dict:
    return {
        "raw": SimpleNamespace(usage_metadata=None),
        "parsed": GeneratedCardSet(cards=make_cards(count)),
        "parsing_error": None,
    }


def make_client(results: list[dict]) -> tuple[LLMClient, FakeStructuredModel]:
    structured = FakeStructuredModel(results)
    client = LLMClient(model="gpt-4o-mini", api_key="test-key", max_attempts=2)
    client._llm = FakeChatModel(structured)
    return client, structured


@pytest.mark.asyncio
async def test_malformed_output_is_retried_then_fails():
    client, structured = make_client([malformed(), malformed(), parsed(20)])

    with pytest.raises(StructuredOutputError) as exc:
        await client.generate_structured("prompt", GeneratedCardSet)

    assert structured.calls == 2
    assert "did not match schema" in str(exc.value)


@pytest.mark.asyncio
async def test_second_attempt_succeeds():
    client, structured = make_client([malformed(), parsed(20)])

    result = await client.generate_structured("prompt", GeneratedCardSet)

    assert structured.calls == 2
    assert len(result.cards) == 20


@pytest.mark.asyncio
async def test_first_valid_answer_is_returned():
    client, structured = make_client([parsed(20), parsed(3)])

    result = await client.generate_structured("prompt", GeneratedCardSet, system_prompt="Be brief")

    assert structured.calls == 1
    assert len(result.cards) == 20
    assert client.llm.schema is GeneratedCardSet


@pytest.mark.asyncio
async def test_generator_reports_exhausted_retries_as_format_error():
    client, structured = make_client([malformed(), malformed()])
    generator = FlashcardGenerator(llm=client, cards_per_deck=20)

    with pytest.raises(ProviderFormatError):
        await generator.generate("Spanish Basics", "Common greetings")
    assert structured.calls == 2


def test_client_without_key_is_not_configured():
    assert not LLMClient(api_key="").is_configured
    assert LLMClient(api_key="sk-test").is_configured
