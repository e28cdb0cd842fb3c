"""
Flashdeck - Deck Models
SQLAlchemy models for user-owned decks and their cards
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashdeck.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Deck(Base):
    """A named collection of cards owned by one identity."""

    __tablename__ = "decks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Opaque user ID issued by the identity provider
    owner_id: Mapped[str] = mapped_column(String(255), index=True)

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Flips to True once, the first time AI generation succeeds
    ai_generation_used: Mapped[bool] = mapped_column(Boolean, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow
    )

    # Relationships
    cards: Mapped[list["Card"]] = relationship(
        "Card",
        back_populates="deck",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def touch(self) -> None:
        """Advance ``updated_at`` after a change to the deck's cards."""
        self.updated_at = utcnow()


class Card(Base):
    """A front/back text pair inside a deck."""

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deck_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("decks.id", ondelete="CASCADE"),
        index=True
    )

    front: Mapped[str] = mapped_column(Text)  # question or prompt
    back: Mapped[str] = mapped_column(Text)  # answer or translation

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow
    )

    # Relationships
    deck: Mapped["Deck"] = relationship("Deck", back_populates="cards", lazy="raise")
