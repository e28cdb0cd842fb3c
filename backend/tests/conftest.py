"""
Flashdeck - Test Configuration
Pytest fixtures and configuration for testing
"""
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import flashdeck.models  # noqa: F401
from flashdeck.ai.flashcard_generator import FlashcardGenerator, get_flashcard_generator
from flashdeck.core.database import Base, get_db
from flashdeck.core.entitlements import Feature
from flashdeck.core.security import create_access_token
from flashdeck.main import app
from flashdeck.schemas.generation import GeneratedCard, GeneratedCardSet


# In-memory SQLite, one database per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FREE_FEATURES = [Feature.THREE_DECKS_LIMIT.value]
PRO_FEATURES = [Feature.UNLIMITED_DECKS.value, Feature.AI_FLASHCARDS_GENERATION.value]


def make_cards(count: int, prefix: str = "Card") -> list[GeneratedCard]:
    return [
        GeneratedCard(front=f"{prefix} {i} front", back=f"{prefix} {i} back")
        for i in range(1, count + 1)
    ]


class FakeLLM:
    """Stands in for LLMClient: returns a canned card set or raises."""

    def __init__(self, cards: list[GeneratedCard] | None = None, error: Exception | None = None,
                 configured: bool = True):
        self.cards = cards if cards is not None else make_cards(20)
        self.error = error
        self.configured = configured
        self.calls: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def generate_structured(self, prompt, schema, system_prompt=None, agent_name="LLMClient"):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return GeneratedCardSet(cards=self.cards)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def generator(fake_llm: FakeLLM) -> FlashcardGenerator:
    return FlashcardGenerator(llm=fake_llm, cards_per_deck=20)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    generator: FlashcardGenerator,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session and generator overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_flashcard_generator] = lambda: generator

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_headers() -> Callable[..., dict[str, str]]:
    """Build bearer headers for a user holding the given features."""

    def _make(user_id: str = "user_1", features: list[str] | None = None,
              plan: str | None = None) -> dict[str, str]:
        claims: dict[str, Any] = {"features": features if features is not None else PRO_FEATURES}
        if plan:
            claims["plan"] = plan
        token = create_access_token(user_id, additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_headers) -> dict[str, str]:
    """Headers for a Pro user."""
    return make_headers("user_1", PRO_FEATURES, plan="pro")


@pytest.fixture
def free_headers(make_headers) -> dict[str, str]:
    """Headers for a free-plan user."""
    return make_headers("user_free", FREE_FEATURES)


@pytest.fixture
def other_headers(make_headers) -> dict[str, str]:
    """Headers for a second Pro user who owns nothing in the fixtures."""
    return make_headers("user_2", PRO_FEATURES, plan="pro")


@pytest.fixture
def sample_deck_data() -> dict[str, Any]:
    return {
        "name": "Spanish Basics",
        "description": "Common greetings",
    }


@pytest_asyncio.fixture
async def deck(client: AsyncClient, auth_headers, sample_deck_data) -> dict[str, Any]:
    """A deck owned by the Pro user."""
    response = await client.post("/api/v1/decks", json=sample_deck_data, headers=auth_headers)
    assert response.status_code == 201
    return response.json()
