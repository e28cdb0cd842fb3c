"""
Flashdeck - AI Generation Schemas
Structured output shape requested from the provider, and the API responses
"""
from typing import List

from pydantic import BaseModel, Field

from flashdeck.schemas.deck import CardResponse


class GeneratedCard(BaseModel):
    """Single flashcard as returned by the model."""
    front: str = Field(..., description="The question, prompt, term, or source content")
    back: str = Field(..., description="The answer, explanation, definition, or target content")


class GeneratedCardSet(BaseModel):
    """Flashcards generated for a deck."""
    cards: List[GeneratedCard] = Field(..., description="The generated flashcards")


class GenerationResponse(BaseModel):
    """Result of a successful AI generation."""
    success: bool = True
    cards: List[CardResponse]
    count: int


class GenerationStatusResponse(BaseModel):
    """Whether the caller may run AI generation on a deck."""
    deck_id: int
    has_ai_access: bool
    is_free_plan: bool
    ai_generation_used: bool
    can_generate: bool
    cards_per_generation: int
