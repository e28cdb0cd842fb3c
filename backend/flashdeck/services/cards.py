"""
Flashdeck - Card Service
Card queries and writes, with ownership verified through the parent deck
"""
import logging
import random
from typing import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.exceptions import ResourceNotFoundError
from flashdeck.models.deck import Card, Deck, utcnow
from flashdeck.schemas.deck import CardCreate, CardUpdate
from flashdeck.services.decks import DeckService

logger = logging.getLogger(__name__)


class CardService:
    """Service for card operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.decks = DeckService(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_cards(self, owner_id: str, deck_id: int) -> Sequence[Card]:
        """
        All cards of a deck, most recently updated first.

        Raises:
            ResourceNotFoundError: If the deck is missing or not owned
        """
        await self.decks.get_owned_deck(owner_id, deck_id)

        result = await self.db.execute(
            select(Card)
            .where(Card.deck_id == deck_id)
            .order_by(Card.updated_at.desc(), Card.id.desc())
        )
        return result.scalars().all()

    async def get_card(self, owner_id: str, card_id: int) -> tuple[Card, Deck] | None:
        """Get a card and its deck, or None unless the user owns the deck."""
        result = await self.db.execute(
            select(Card, Deck)
            .join(Deck, Card.deck_id == Deck.id)
            .where(Card.id == card_id, Deck.owner_id == owner_id)
            .limit(1)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_owned_card(self, owner_id: str, card_id: int) -> tuple[Card, Deck]:
        found = await self.get_card(owner_id, card_id)
        if found is None:
            raise ResourceNotFoundError("Card not found or access denied")
        return found

    async def random_card(self, owner_id: str, deck_id: int) -> Card | None:
        """Pick one card of the deck at random, or None for an empty deck."""
        cards = await self.list_cards(owner_id, deck_id)
        if not cards:
            return None
        return random.choice(cards)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_card(self, owner_id: str, deck_id: int, data: CardCreate) -> Card:
        deck = await self.decks.get_owned_deck(owner_id, deck_id)

        card = Card(deck_id=deck.id, front=data.front, back=data.back)
        self.db.add(card)
        deck.touch()

        await self.db.flush()
        await self.db.refresh(card)
        return card

    async def update_card(self, owner_id: str, card_id: int, data: CardUpdate) -> Card:
        card, deck = await self.get_owned_card(owner_id, card_id)

        card.front = data.front
        card.back = data.back
        card.updated_at = utcnow()
        deck.touch()

        await self.db.flush()
        await self.db.refresh(card)
        return card

    async def delete_card(self, owner_id: str, card_id: int) -> int:
        """Delete a card; returns the ID of the deck it belonged to."""
        card, deck = await self.get_owned_card(owner_id, card_id)

        await self.db.execute(delete(Card).where(Card.id == card.id))
        deck.touch()
        await self.db.flush()

        logger.info("Deleted card %s from deck %s", card_id, deck.id)
        return deck.id

    async def create_many_cards(
        self,
        owner_id: str,
        deck_id: int,
        cards: Iterable[CardCreate],
    ) -> list[Card]:
        """Insert several cards into a deck in one flush."""
        deck = await self.decks.get_owned_deck(owner_id, deck_id)
        return await self.insert_cards(deck, cards)

    async def insert_cards(self, deck: Deck, cards: Iterable[CardCreate]) -> list[Card]:
        """
        Insert cards into an already-verified deck, keeping the given order.

        Returns an empty list (and leaves the deck untouched) when there is
        nothing to insert.
        """
        new_cards = [Card(deck_id=deck.id, front=c.front, back=c.back) for c in cards]
        if not new_cards:
            return []

        self.db.add_all(new_cards)
        deck.touch()
        await self.db.flush()

        logger.info("Inserted %d cards into deck %s", len(new_cards), deck.id)
        return new_cards
