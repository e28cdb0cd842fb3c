"""
Flashdeck - Generation Service
Gates, runs and persists AI flashcard generation for a deck
"""
import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.ai.flashcard_generator import FlashcardGenerator
from flashdeck.core.entitlements import Identity
from flashdeck.core.exceptions import ForbiddenError, PlanLimitExceededError
from flashdeck.models.deck import Card, Deck
from flashdeck.services.cards import CardService
from flashdeck.services.decks import DeckService

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    cards: list[Card]
    count: int


@dataclass
class GenerationStatus:
    deck_id: int
    has_ai_access: bool
    is_free_plan: bool
    ai_generation_used: bool
    can_generate: bool
    cards_per_generation: int


class GenerationService:
    """Service running AI generation on behalf of a deck owner."""

    def __init__(self, db: AsyncSession, generator: FlashcardGenerator):
        self.db = db
        self.generator = generator
        self.decks = DeckService(db)
        self.cards = CardService(db)

    async def _get_deck(self, identity: Identity, deck_id: int) -> Deck:
        deck = await self.decks.get_deck(identity.user_id, deck_id)
        if deck is None:
            raise ForbiddenError("Forbidden: You don't have access to this deck")
        return deck

    async def _claim_generation(self, deck: Deck) -> bool:
        """
        Set the flag only if it is still unset; False when another request
        got there first. Rolled back with the request if generation fails.
        """
        result = await self.db.execute(
            update(Deck)
            .where(Deck.id == deck.id, Deck.ai_generation_used.is_(False))
            .values(ai_generation_used=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def status(self, identity: Identity, deck_id: int) -> GenerationStatus:
        deck = await self._get_deck(identity, deck_id)
        return GenerationStatus(
            deck_id=deck.id,
            has_ai_access=identity.has_ai_access,
            is_free_plan=identity.is_free_plan,
            ai_generation_used=deck.ai_generation_used,
            can_generate=identity.has_ai_access and not deck.ai_generation_used,
            cards_per_generation=self.generator.cards_per_deck,
        )

    async def generate(self, identity: Identity, deck_id: int) -> GenerationResult:
        """
        Generate and store a card set for a deck.

        Order of checks: plan access, deck ownership, "already used" flag.
        The flag is claimed with a conditional update before the provider is
        called, so concurrent requests for one deck cannot both generate. The
        claim and the cards share the request transaction; a failed
        generation rolls both back.

        Raises:
            PlanLimitExceededError: No AI feature on the plan, or the deck
                already used its generation
            ForbiddenError: The deck is missing or not owned
            ProviderError / CountMismatchError: From the generator
        """
        if not identity.has_ai_access:
            raise PlanLimitExceededError(
                "AI flashcard generation is not available on your plan. "
                "Upgrade to access this feature."
            )

        deck = await self._get_deck(identity, deck_id)

        if deck.ai_generation_used or not await self._claim_generation(deck):
            raise PlanLimitExceededError("AI generation has already been used for this deck.")

        generated = await self.generator.generate(deck.name, deck.description)

        inserted = await self.cards.insert_cards(deck, generated)
        deck.ai_generation_used = True
        await self.db.flush()

        logger.info("Stored %d AI-generated cards for deck %s", len(inserted), deck.id)
        return GenerationResult(cards=inserted, count=len(inserted))
