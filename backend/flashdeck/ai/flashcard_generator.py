"""
Flashdeck - Flashcard Generator
Generates a fixed-size card set for a deck from its name and description,
validates the count, and turns provider failures into user-facing errors.
"""
import logging
from typing import List, Optional

from flashdeck.ai.llm import LLMClient, get_llm_client
from flashdeck.ai.telemetry import llm_span
from flashdeck.core.config import settings
from flashdeck.core.exceptions import (
    CountMismatchError,
    FlashdeckError,
    ProviderAuthError,
    ProviderConfigError,
    ProviderError,
    ProviderFormatError,
    ProviderGenericError,
    ProviderQuotaError,
    ProviderRateLimitError,
)
from flashdeck.schemas.generation import GeneratedCard, GeneratedCardSet

logger = logging.getLogger(__name__)


FORMAT_ERROR_MARKERS = (
    "did not match schema",
    "no object generated",
    "validation error",
    "failed to parse",
)


def classify_provider_error(error: BaseException) -> ProviderError:
    """Map a provider failure to an error category by its message."""
    message = str(error)
    lowered = message.lower()

    if any(marker in lowered for marker in FORMAT_ERROR_MARKERS):
        return ProviderFormatError()
    if "api key" in lowered:
        return ProviderAuthError()
    if "quota" in lowered or "billing" in lowered:
        return ProviderQuotaError()
    if "rate limit" in lowered:
        return ProviderRateLimitError()
    return ProviderGenericError(f"AI generation failed: {message}")


class FlashcardGenerator:
    """
    The flashcard generator 🃏

    Asks the model for exactly ``cards_per_deck`` cards. Fewer is a failure
    (nothing is padded), more is trimmed to the first ``cards_per_deck``.
    """

    name = "FlashcardGenerator"

    PROMPT = """CRITICAL: You MUST generate EXACTLY {count} flashcards. Not {under}, not {over}, but exactly {count}.

Generate flashcards for this deck:

**Deck Title:** "{deck_name}"
{description_line}
**REQUIRED: Generate EXACTLY {count} cards (count carefully)**

Work out from the title and description what kind of material this deck
holds, then write cards for it.

**Card format:**
- front: the question, prompt, term, or source content
- back: the answer, explanation, definition, or target content

**Match the content:**
- Vocabulary or translation: keep the back short (just the translation or definition)
- Concepts: explain clearly, with an example where it helps
- Facts: accurate, detailed answers
- Skills: step-by-step explanations

**Quality:**
- One concept per card
- Factually accurate
- Go from basic to more advanced
- Match tone and depth to the subject

**REMINDER: The "cards" array must contain exactly {count} flashcards. Count them before answering.**"""

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        cards_per_deck: Optional[int] = None,
    ):
        self.llm = llm or get_llm_client()
        self.cards_per_deck = cards_per_deck or settings.AI_CARDS_PER_DECK

    def build_prompt(self, deck_name: str, description: Optional[str] = None) -> str:
        description_line = f"**Description:** {description}\n" if description else ""
        return self.PROMPT.format(
            count=self.cards_per_deck,
            under=self.cards_per_deck - 1,
            over=self.cards_per_deck + 1,
            deck_name=deck_name,
            description_line=description_line,
        )

    def validate_count(self, cards: List[GeneratedCard]) -> List[GeneratedCard]:
        """
        Enforce the card count.

        Raises:
            CountMismatchError: If no cards, or fewer than required, came back
        """
        expected = self.cards_per_deck
        actual = len(cards)

        if actual == 0:
            logger.error("AI generation returned no cards")
            raise CountMismatchError(actual=0, expected=expected)

        if actual < expected:
            logger.error("AI generated %d cards instead of %d", actual, expected)
            raise CountMismatchError(actual=actual, expected=expected)

        if actual > expected:
            logger.warning("AI generated %d cards, trimming to %d", actual, expected)

        return list(cards[:expected])

    async def generate(
        self,
        deck_name: str,
        description: Optional[str] = None,
    ) -> List[GeneratedCard]:
        """
        Generate the card set for a deck.

        Raises:
            ProviderConfigError: If no API key is configured (no request is made)
            ProviderError: For any provider failure, by category
            CountMismatchError: If fewer cards than required came back
        """
        if not self.llm.is_configured:
            raise ProviderConfigError()

        with llm_span("generate_flashcards", {"deck.name": deck_name}) as span:
            try:
                card_set = await self.llm.generate_structured(
                    prompt=self.build_prompt(deck_name, description),
                    schema=GeneratedCardSet,
                    agent_name=self.name,
                )
            except FlashdeckError:
                raise
            except Exception as e:
                logger.error("AI generation error for deck %r: %s", deck_name, e)
                raise classify_provider_error(e) from e

            cards = card_set.cards if card_set else []
            span.set_attribute("flashcard.card_count", len(cards))
            logger.info("AI generated %d cards for deck: %s", len(cards), deck_name)

            return self.validate_count(cards)


_default_generator: Optional[FlashcardGenerator] = None


def get_flashcard_generator() -> FlashcardGenerator:
    """FastAPI dependency returning the shared generator."""
    global _default_generator
    if _default_generator is None:
        _default_generator = FlashcardGenerator()
    return _default_generator
