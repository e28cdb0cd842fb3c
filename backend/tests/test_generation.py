"""
Flashdeck - AI Generation Tests
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update

from flashdeck.ai.flashcard_generator import FlashcardGenerator, classify_provider_error
from flashdeck.ai.llm import StructuredOutputError
from flashdeck.core.entitlements import Feature, Identity
from flashdeck.core.exceptions import (
    CountMismatchError,
    PlanLimitExceededError,
    ProviderAuthError,
    ProviderConfigError,
    ProviderFormatError,
    ProviderGenericError,
    ProviderQuotaError,
    ProviderRateLimitError,
)
from flashdeck.models.deck import Card, Deck
from flashdeck.services.generation import GenerationService
from tests.conftest import PRO_FEATURES, FakeLLM, make_cards


async def card_count(db_session, deck_id: int) -> int:
    return await db_session.scalar(select(func.count(Card.id)).where(Card.deck_id == deck_id))


# ============================================================================
# Generator
# ============================================================================

@pytest.mark.asyncio
async def test_generator_returns_exactly_twenty():
    generator = FlashcardGenerator(llm=FakeLLM(make_cards(20)), cards_per_deck=20)
    cards = await generator.generate("Spanish Basics", "Common greetings")
    assert len(cards) == 20


@pytest.mark.asyncio
async def test_generator_trims_extra_cards():
    generator = FlashcardGenerator(llm=FakeLLM(make_cards(25)), cards_per_deck=20)
    cards = await generator.generate("Spanish Basics")
    assert len(cards) == 20
    assert cards[0].front == "Card 1 front"
    assert cards[-1].front == "Card 20 front"


@pytest.mark.asyncio
async def test_generator_rejects_short_set():
    generator = FlashcardGenerator(llm=FakeLLM(make_cards(19)), cards_per_deck=20)
    with pytest.raises(CountMismatchError) as exc:
        await generator.generate("Spanish Basics")
    assert exc.value.actual == 19
    assert "only 19 cards instead of 20" in exc.value.message


@pytest.mark.asyncio
async def test_generator_rejects_empty_set():
    generator = FlashcardGenerator(llm=FakeLLM([]), cards_per_deck=20)
    with pytest.raises(CountMismatchError) as exc:
        await generator.generate("Spanish Basics")
    assert exc.value.message == "AI did not generate any flashcards. Please try again."


@pytest.mark.asyncio
async def test_generator_without_api_key_makes_no_call():
    llm = FakeLLM(configured=False)
    generator = FlashcardGenerator(llm=llm, cards_per_deck=20)
    with pytest.raises(ProviderConfigError):
        await generator.generate("Spanish Basics")
    assert llm.calls == []


@pytest.mark.asyncio
async def test_generator_classifies_provider_errors():
    llm = FakeLLM(error=RuntimeError("Rate limit reached for requests"))
    generator = FlashcardGenerator(llm=llm, cards_per_deck=20)
    with pytest.raises(ProviderRateLimitError):
        await generator.generate("Spanish Basics")


def test_prompt_mentions_deck_and_count():
    generator = FlashcardGenerator(llm=FakeLLM(), cards_per_deck=20)
    prompt = generator.build_prompt("Spanish Basics", "Common greetings")
    assert '"Spanish Basics"' in prompt
    assert "Common greetings" in prompt
    assert "EXACTLY 20" in prompt
    assert "Description" not in generator.build_prompt("Spanish Basics")


@pytest.mark.parametrize("message,expected", [
    ("No object generated: response did not match schema", ProviderFormatError),
    ("1 validation error for GeneratedCardSet", ProviderFormatError),
    ("Failed to parse tool call", ProviderFormatError),
    ("Incorrect API key provided", ProviderAuthError),
    ("You exceeded your current quota", ProviderQuotaError),
    ("Billing hard limit reached", ProviderQuotaError),
    ("Rate limit reached", ProviderRateLimitError),
    ("Connection reset", ProviderGenericError),
])
def test_classify_provider_error(message, expected):
    assert isinstance(classify_provider_error(Exception(message)), expected)


def test_classify_generic_keeps_message():
    error = classify_provider_error(Exception("Connection reset"))
    assert error.message == "AI generation failed: Connection reset"
    assert error.status_code == 502


def test_structured_output_error_is_a_format_error():
    error = StructuredOutputError("No object generated: response did not match schema (x)")
    assert isinstance(classify_provider_error(error), ProviderFormatError)


# ============================================================================
# API
# ============================================================================

@pytest.mark.asyncio
async def test_generate_spanish_basics(client: AsyncClient, deck, auth_headers, fake_llm, db_session):
    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 20
    assert len(data["cards"]) == 20
    assert response.headers["X-Revalidate-Paths"] == f"/decks/{deck['id']}"

    assert await card_count(db_session, deck["id"]) == 20
    stored = await db_session.get(Deck, deck["id"])
    assert stored.ai_generation_used is True

    # Second attempt is blocked before the provider is called
    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "AI generation has already been used for this deck."
    assert len(fake_llm.calls) == 1
    assert await card_count(db_session, deck["id"]) == 20


@pytest.mark.asyncio
async def test_generate_short_set_writes_nothing(client: AsyncClient, deck, auth_headers,
                                                 fake_llm, db_session):
    fake_llm.cards = make_cards(19)

    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 502
    assert "only 19 cards" in response.json()["detail"]

    assert await card_count(db_session, deck["id"]) == 0
    stored = await db_session.get(Deck, deck["id"])
    assert stored.ai_generation_used is False


@pytest.mark.asyncio
async def test_generate_trims_to_twenty(client: AsyncClient, deck, auth_headers, fake_llm, db_session):
    fake_llm.cards = make_cards(25)

    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["count"] == 20
    assert await card_count(db_session, deck["id"]) == 20


@pytest.mark.asyncio
async def test_generate_without_api_key(client: AsyncClient, deck, auth_headers, fake_llm):
    fake_llm.configured = False

    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 503
    assert "OPENAI_API_KEY" in response.json()["detail"]


@pytest.mark.asyncio
async def test_generate_quota_error(client: AsyncClient, deck, auth_headers, fake_llm):
    fake_llm.error = RuntimeError("You exceeded your current quota")

    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 503
    assert "quota" in response.json()["detail"]


@pytest.mark.asyncio
async def test_generate_requires_ai_feature(client: AsyncClient, make_headers, fake_llm):
    headers = make_headers("user_free", [Feature.THREE_DECKS_LIMIT.value])
    response = await client.post("/api/v1/decks", json={"name": "Verbs"}, headers=headers)
    deck_id = response.json()["id"]

    response = await client.post(f"/api/v1/decks/{deck_id}/generate", headers=headers)
    assert response.status_code == 403
    assert "not available on your plan" in response.json()["detail"]
    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_one_time_generation_feature(client: AsyncClient, make_headers):
    headers = make_headers(
        "user_once",
        [Feature.THREE_DECKS_LIMIT.value, Feature.ONE_AI_FLASHCARDS_GENERATION.value],
    )
    response = await client.post("/api/v1/decks", json={"name": "Verbs"}, headers=headers)
    deck_id = response.json()["id"]

    response = await client.post(f"/api/v1/decks/{deck_id}/generate", headers=headers)
    assert response.status_code == 200
    assert response.json()["count"] == 20


@pytest.mark.asyncio
async def test_generate_on_other_users_deck(client: AsyncClient, deck, other_headers, fake_llm):
    response = await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden: You don't have access to this deck"
    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_generation_status(client: AsyncClient, deck, auth_headers):
    response = await client.get(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["has_ai_access"] is True
    assert data["is_free_plan"] is False
    assert data["can_generate"] is True
    assert data["cards_per_generation"] == 20

    await client.post(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)

    response = await client.get(f"/api/v1/decks/{deck['id']}/generate", headers=auth_headers)
    data = response.json()
    assert data["ai_generation_used"] is True
    assert data["can_generate"] is False


# ============================================================================
# Service
# ============================================================================

@pytest.mark.asyncio
async def test_generate_blocked_when_claimed_by_another_request(db_session, generator, fake_llm):
    deck = Deck(owner_id="user_1", name="Spanish Basics", description="Common greetings")
    db_session.add(deck)
    await db_session.flush()

    # Another request sets the flag after this session loaded the deck
    await db_session.execute(
        update(Deck)
        .where(Deck.id == deck.id)
        .values(ai_generation_used=True)
        .execution_options(synchronize_session=False)
    )
    assert deck.ai_generation_used is False

    service = GenerationService(db_session, generator)
    identity = Identity(user_id="user_1", features=frozenset(PRO_FEATURES))

    with pytest.raises(PlanLimitExceededError):
        await service.generate(identity, deck.id)

    assert fake_llm.calls == []
    assert await card_count(db_session, deck.id) == 0


@pytest.mark.asyncio
async def test_generate_claims_flag_once(db_session, generator, fake_llm):
    deck = Deck(owner_id="user_1", name="Spanish Basics", description="Common greetings")
    db_session.add(deck)
    await db_session.flush()

    service = GenerationService(db_session, generator)
    identity = Identity(user_id="user_1", features=frozenset(PRO_FEATURES))

    result = await service.generate(identity, deck.id)
    assert result.count == 20
    assert deck.ai_generation_used is True

    with pytest.raises(PlanLimitExceededError):
        await GenerationService(db_session, generator).generate(identity, deck.id)
    assert len(fake_llm.calls) == 1
    assert await card_count(db_session, deck.id) == 20
