"""
Flashdeck - Deck & Card Schemas
Pydantic schemas for deck and card requests and responses
"""
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# ============================================================================
# Decks
# ============================================================================

class DeckCreate(BaseModel):
    """Schema for creating a deck."""
    name: Annotated[str, Field(min_length=1, max_length=100)]
    description: Annotated[str | None, Field(max_length=500)] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v)


class DeckUpdate(BaseModel):
    """Schema for updating a deck. Only the fields sent are changed."""
    name: Annotated[str | None, Field(min_length=1, max_length=100)] = None
    description: Annotated[str | None, Field(max_length=500)] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("Name is required")
        return _not_blank(v)


class DeckResponse(BaseModel):
    """API response for a deck."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    ai_generation_used: bool
    card_count: int = 0
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Cards
# ============================================================================

class CardCreate(BaseModel):
    """Schema for creating a card."""
    front: Annotated[str, Field(min_length=1)]
    back: Annotated[str, Field(min_length=1)]

    @field_validator("front", "back")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _not_blank(v)


class CardUpdate(CardCreate):
    """Schema for updating a card."""
    pass


class CardBulkCreate(BaseModel):
    """Schema for inserting many cards at once."""
    cards: Annotated[list[CardCreate], Field(max_length=500)]


class CardResponse(BaseModel):
    """API response for a card."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    deck_id: int
    front: str
    back: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Plan
# ============================================================================

class DeckLimitsResponse(BaseModel):
    """Deck usage against the caller's plan."""
    deck_count: int
    deck_limit: int | None
    is_at_limit: bool
    is_pro: bool
