"""
Flashdeck - Deck Service
Ownership-scoped deck queries and writes
"""
import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.config import settings
from flashdeck.core.entitlements import Feature, Identity
from flashdeck.core.exceptions import PlanLimitExceededError, ResourceNotFoundError
from flashdeck.models.deck import Card, Deck
from flashdeck.schemas.deck import DeckCreate, DeckUpdate

logger = logging.getLogger(__name__)

PRO_PLAN = "pro"


@dataclass
class DeckLimits:
    deck_count: int
    deck_limit: int | None
    is_at_limit: bool
    is_pro: bool


class DeckService:
    """Service for deck operations. Every query is scoped to one owner."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_decks(self, owner_id: str) -> list[tuple[Deck, int]]:
        """All decks of a user with their card counts, most recently updated first."""
        card_count = (
            select(func.count(Card.id))
            .where(Card.deck_id == Deck.id)
            .correlate(Deck)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Deck, card_count)
            .where(Deck.owner_id == owner_id)
            .order_by(Deck.updated_at.desc(), Deck.id.desc())
        )
        return [(deck, count) for deck, count in result.all()]

    async def get_deck(self, owner_id: str, deck_id: int) -> Deck | None:
        """Get a deck by ID, or None if it is missing or owned by someone else."""
        result = await self.db.execute(
            select(Deck).where(Deck.id == deck_id, Deck.owner_id == owner_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_owned_deck(self, owner_id: str, deck_id: int) -> Deck:
        """
        Get a deck the user owns.

        Raises:
            ResourceNotFoundError: If the deck is missing or not owned
        """
        deck = await self.get_deck(owner_id, deck_id)
        if deck is None:
            raise ResourceNotFoundError()
        return deck

    async def count_cards(self, deck_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Card.id)).where(Card.deck_id == deck_id)
        )
        return result.scalar_one()

    async def get_deck_with_card_count(self, owner_id: str, deck_id: int) -> tuple[Deck, int]:
        deck = await self.get_owned_deck(owner_id, deck_id)
        return deck, await self.count_cards(deck.id)

    async def count_decks(self, owner_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Deck.id)).where(Deck.owner_id == owner_id)
        )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def ensure_can_add_deck(self, identity: Identity) -> None:
        """
        Raises:
            PlanLimitExceededError: If the free-plan deck limit is reached
        """
        if identity.has_unlimited_decks or not identity.has(Feature.THREE_DECKS_LIMIT):
            return

        deck_count = await self.count_decks(identity.user_id)
        if deck_count >= settings.FREE_PLAN_DECK_LIMIT:
            raise PlanLimitExceededError(
                f"You've reached the maximum of {settings.FREE_PLAN_DECK_LIMIT} decks. "
                "Upgrade to Pro for unlimited decks."
            )

    async def deck_limits(self, identity: Identity) -> DeckLimits:
        """Deck count and limit for the dashboard; the limit is None with unlimited decks."""
        deck_count = await self.count_decks(identity.user_id)
        deck_limit = None if identity.has_unlimited_decks else settings.FREE_PLAN_DECK_LIMIT
        return DeckLimits(
            deck_count=deck_count,
            deck_limit=deck_limit,
            is_at_limit=(
                deck_limit is not None
                and identity.has(Feature.THREE_DECKS_LIMIT)
                and deck_count >= deck_limit
            ),
            is_pro=identity.has_plan(PRO_PLAN),
        )

    async def create_deck(self, identity: Identity, data: DeckCreate) -> Deck:
        """
        Create a deck for the caller.

        Users without unlimited decks are capped by the deck-limit flag.

        Raises:
            PlanLimitExceededError: If the free-plan deck limit is reached
        """
        await self.ensure_can_add_deck(identity)

        deck = Deck(
            owner_id=identity.user_id,
            name=data.name,
            description=data.description,
        )
        self.db.add(deck)
        await self.db.flush()
        await self.db.refresh(deck)

        logger.info("Created deck %s for user %s", deck.id, identity.user_id)
        return deck

    async def update_deck(self, owner_id: str, deck_id: int, data: DeckUpdate) -> Deck:
        """Update name and/or description. The AI generation flag is never touched here."""
        deck = await self.get_owned_deck(owner_id, deck_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(deck, field, value)
        deck.touch()

        await self.db.flush()
        await self.db.refresh(deck)
        return deck

    async def delete_deck(self, owner_id: str, deck_id: int) -> None:
        """Delete a deck together with all of its cards."""
        deck = await self.get_owned_deck(owner_id, deck_id)

        await self.db.execute(delete(Card).where(Card.deck_id == deck.id))
        await self.db.execute(delete(Deck).where(Deck.id == deck.id))
        await self.db.flush()

        logger.info("Deleted deck %s for user %s", deck_id, owner_id)

    async def duplicate_deck(self, identity: Identity, deck_id: int) -> Deck:
        """
        Copy a deck and all of its cards.

        Runs inside the request transaction, so a failure part-way leaves
        nothing behind.

        The copy is named "<name> (Copy)" and starts with AI generation unused.
        """
        original = await self.get_owned_deck(identity.user_id, deck_id)
        await self.ensure_can_add_deck(identity)

        copy = Deck(
            owner_id=identity.user_id,
            name=f"{original.name} (Copy)",
            description=original.description,
        )
        self.db.add(copy)
        await self.db.flush()

        cards: Sequence[Card] = (
            await self.db.execute(
                select(Card).where(Card.deck_id == original.id).order_by(Card.id)
            )
        ).scalars().all()

        self.db.add_all(
            Card(deck_id=copy.id, front=card.front, back=card.back)
            for card in cards
        )
        await self.db.flush()

        await self.db.refresh(copy)
        logger.info("Duplicated deck %s into %s (%d cards)", deck_id, copy.id, len(cards))
        return copy
