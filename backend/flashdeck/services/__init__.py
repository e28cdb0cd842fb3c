"""Flashdeck - Services initialization."""
from flashdeck.services.cards import CardService
from flashdeck.services.decks import DeckService
from flashdeck.services.generation import (
    GenerationResult,
    GenerationService,
    GenerationStatus,
)

__all__ = [
    "CardService",
    "DeckService",
    "GenerationResult",
    "GenerationService",
    "GenerationStatus",
]
