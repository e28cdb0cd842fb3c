"""Flashdeck - Models initialization."""
from flashdeck.models.deck import Card, Deck

__all__ = [
    "Deck",
    "Card",
]
